from __future__ import annotations

from pydantic import BaseModel, Field


class ImageRequest(BaseModel):
    # Optional so that a missing reference is reported as a 400, not a schema error
    imageUrl: str | None = None


class SegmentRequest(ImageRequest):
    pass


class ColorPaletteRequest(ImageRequest):
    colorCount: int | None = Field(default=None, ge=1, le=64)
    seed: int | None = Field(default=None, ge=0)


class DepthRequest(ImageRequest):
    pass


class BoundsOut(BaseModel):
    x: int
    y: int
    width: int
    height: int


class WallSegmentOut(BoundsOut):
    confidence: float = Field(..., ge=0.0, le=1.0)


class SegmentationOut(BaseModel):
    mask: str = Field(..., description="Base64-encoded PNG, white where a wall was detected")
    confidence: float = Field(..., ge=0.0, le=1.0)
    bounds: BoundsOut
    wallSegments: list[WallSegmentOut]
    usedFallback: bool = False
    processingTime: float = Field(..., description="Milliseconds spent decoding and analysing")


class SegmentResponse(BaseModel):
    success: bool = True
    segmentation: SegmentationOut


class ColorHarmonyOut(BaseModel):
    complementary: str
    analogous: list[str]
    triadic: list[str]


class PaletteOut(BaseModel):
    colors: list[str]
    dominantColor: str
    colorHarmony: ColorHarmonyOut
    processingTime: float


class ColorPaletteResponse(BaseModel):
    success: bool = True
    palette: PaletteOut


class PerspectiveCorrectionOut(BaseModel):
    angle: float
    transform: list[list[float]]


class DepthOut(BaseModel):
    depthMap: list[list[float]]
    minDepth: float
    maxDepth: float
    perspectiveCorrection: PerspectiveCorrectionOut
    processingTime: float


class DepthResponse(BaseModel):
    success: bool = True
    depth: DepthOut


class ModelStatusResponse(BaseModel):
    initialized: bool
    models: list[str]
