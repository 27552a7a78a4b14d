"""
Image Analysis Pipeline Configuration

Centralized thresholds for wall segmentation, palette extraction and depth
estimation, validated with Pydantic.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator


class AnalysisConfig(BaseModel):
    """
    Tunable parameters of the image-analysis pipeline.

    Every stage reads its thresholds from here instead of hardcoding them.
    """

    # Edge detection / rectangle search
    edge_threshold: int = Field(
        default=100,
        ge=0,
        le=255,
        description="Edge magnitude a boundary walk must exceed to stop (boundary sensitivity)"
    )
    grid_step: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Spacing in pixels between rectangle search seeds"
    )
    max_walk: int = Field(
        default=200,
        ge=1,
        le=10000,
        description="Maximum distance in pixels a boundary walk covers from its seed"
    )
    min_box_size: int = Field(
        default=50,
        ge=0,
        le=10000,
        description="Candidates must be strictly wider and taller than this many pixels"
    )

    # Wall validation
    confidence_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum wall-like pixel fraction for a candidate to be accepted"
    )
    brightness_min: float = Field(
        default=50.0,
        ge=0.0,
        le=255.0,
        description="Exclusive lower brightness bound of a wall-like pixel"
    )
    brightness_max: float = Field(
        default=200.0,
        ge=0.0,
        le=255.0,
        description="Exclusive upper brightness bound of a wall-like pixel"
    )
    max_channel_spread: int = Field(
        default=50,
        ge=1,
        le=256,
        description="Exclusive upper bound of max(R,G,B)-min(R,G,B) for a wall-like pixel"
    )

    # Fallback region
    fallback_width_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Width of the synthesized fallback region relative to the image"
    )
    fallback_height_ratio: float = Field(
        default=0.6,
        gt=0.0,
        le=1.0,
        description="Height of the synthesized fallback region relative to the image"
    )
    fallback_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence assigned to the synthesized fallback region"
    )

    # Palette extraction
    default_color_count: int = Field(
        default=5,
        ge=1,
        le=64,
        description="Number of palette colors when the caller does not ask for a count"
    )
    kmeans_iterations: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Fixed number of k-means rounds (clustering budget)"
    )
    sample_stride: int = Field(
        default=10,
        ge=1,
        le=10000,
        description="Every n-th pixel is sampled for clustering (palette sampling density)"
    )

    # Depth placeholder
    depth_fill: float = Field(
        default=0.5,
        description="Uniform value of the placeholder depth grid"
    )
    min_depth: float = Field(default=0.1, ge=0.0)
    max_depth: float = Field(default=1.0, gt=0.0)

    @field_validator("fallback_width_ratio", "fallback_height_ratio")
    @classmethod
    def validate_ratios(cls, v: float, info) -> float:
        if v < 0.05:
            raise ValueError(f"{info.field_name} is too small to describe a usable region")
        return v

    @model_validator(mode="after")
    def validate_brightness_window(self) -> "AnalysisConfig":
        """Ensure the brightness window is not empty."""
        if self.brightness_min >= self.brightness_max:
            raise ValueError(
                f"brightness_min ({self.brightness_min}) must be less than "
                f"brightness_max ({self.brightness_max})"
            )
        return self

    @model_validator(mode="after")
    def validate_depth_range(self) -> "AnalysisConfig":
        """Ensure the placeholder depth value lies inside the reported range."""
        if not self.min_depth <= self.depth_fill <= self.max_depth:
            raise ValueError(
                f"depth_fill ({self.depth_fill}) must lie within "
                f"[{self.min_depth}, {self.max_depth}]"
            )
        return self

    @classmethod
    def default(cls) -> "AnalysisConfig":
        return cls()


__all__ = ["AnalysisConfig"]
