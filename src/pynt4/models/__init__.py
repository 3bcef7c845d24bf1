"""Data models returned by the client facade."""

from pynt4.models.geometry import Pose2d, Pose3d, Quaternion, Rotation2d, Translation2d, Translation3d
from pynt4.models.topic import TopicInfo

__all__ = [
    "Pose2d",
    "Pose3d",
    "Quaternion",
    "Rotation2d",
    "TopicInfo",
    "Translation2d",
    "Translation3d",
]
