"""
Input Message Schema
====================

Pydantic model for frame messages delivered to the scanner, either
posted to `POST /frames` or received from a frame stream.

Input Contract:
    {
        "frame_id": 1234,
        "timestamp": 1707321234.567,
        "image": "<base64 JPEG or PNG>"
    }

Example:
    message = FrameMessage.model_validate_json(raw)
    print(f"Received frame {message.frame_id}")
"""

from pydantic import BaseModel, ConfigDict, Field


class FrameMessage(BaseModel):
    """
    Schema for one encoded video frame.

    Attributes:
        frame_id: Monotonically increasing frame counter
        timestamp: UNIX timestamp when the frame was captured
        image: Base64-encoded JPEG/PNG frame data
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "frame_id": 1234,
                "timestamp": 1707321234.567,
                "image": "/9j/4AAQSkZJRg...",
            }
        }
    )

    frame_id: int = Field(
        ...,
        ge=0,
        description="Monotonically increasing frame counter from source",
    )

    timestamp: float = Field(
        ...,
        gt=0,
        description="UNIX timestamp in seconds when frame was captured",
    )

    image: str = Field(
        ...,
        min_length=1,
        description="Base64-encoded JPEG/PNG frame data",
    )
