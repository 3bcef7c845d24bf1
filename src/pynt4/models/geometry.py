"""WPILib geometry structs decoded from raw topic bytes.

All layouts are little-endian doubles in WPILib field coordinates
(x forward, y left, z up); no axis conversion is applied here.

=============  =====  ==========================================
Struct         Bytes  Layout
=============  =====  ==========================================
Translation2d  16     x, y
Rotation2d     8      value (radians)
Pose2d         24     Translation2d, Rotation2d
Translation3d  24     x, y, z
Quaternion     32     w, x, y, z
Pose3d         56     Translation3d, Rotation3d (a Quaternion)
=============  =====  ==========================================
"""

from __future__ import annotations

import math
import struct
from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class _GeometryModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    SIZE: ClassVar[int]

    @classmethod
    def fits(cls, data: bytes, offset: int = 0) -> bool:
        return len(data) - offset >= cls.SIZE


class Translation2d(_GeometryModel):
    SIZE: ClassVar[int] = 16

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Translation2d:
        x, y = struct.unpack_from("<2d", data, offset)
        return cls(x=x, y=y)

    @property
    def norm(self) -> float:
        return math.hypot(self.x, self.y)


class Rotation2d(_GeometryModel):
    SIZE: ClassVar[int] = 8

    radians: float = 0.0

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Rotation2d:
        (value,) = struct.unpack_from("<d", data, offset)
        return cls(radians=value)

    @property
    def degrees(self) -> float:
        return math.degrees(self.radians)


class Pose2d(_GeometryModel):
    SIZE: ClassVar[int] = 24

    translation: Translation2d = Translation2d()
    rotation: Rotation2d = Rotation2d()

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Pose2d:
        return cls(
            translation=Translation2d.from_bytes(data, offset),
            rotation=Rotation2d.from_bytes(data, offset + Translation2d.SIZE),
        )


class Translation3d(_GeometryModel):
    SIZE: ClassVar[int] = 24

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Translation3d:
        x, y, z = struct.unpack_from("<3d", data, offset)
        return cls(x=x, y=y, z=z)


class Quaternion(_GeometryModel):
    SIZE: ClassVar[int] = 32

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Quaternion:
        w, x, y, z = struct.unpack_from("<4d", data, offset)
        return cls(w=w, x=x, y=y, z=z)


class Pose3d(_GeometryModel):
    SIZE: ClassVar[int] = 56

    translation: Translation3d = Translation3d()
    rotation: Quaternion = Quaternion()

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> Pose3d:
        return cls(
            translation=Translation3d.from_bytes(data, offset),
            rotation=Quaternion.from_bytes(data, offset + Translation3d.SIZE),
        )

    @classmethod
    def array_from_bytes(cls, data: bytes) -> list[Pose3d] | None:
        """Decode concatenated poses; ``None`` unless *data* is a whole number of records."""
        if len(data) % cls.SIZE:
            return None
        return [cls.from_bytes(data, offset) for offset in range(0, len(data), cls.SIZE)]
