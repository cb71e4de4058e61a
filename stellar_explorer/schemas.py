from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CelestialInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    name: str = Field(description="The name of the celestial object")
    type: str = Field(description="Type of object (exoplanet, comet, asteroid, star, galaxy, etc.)")
    distance: str = Field(description="Distance from Earth or solar system")
    orbit: str = Field(
        description="What it orbits around (star name, planet, etc.) and orbital details"
    )
    moons: str = Field(description="Information about moons or rings if applicable")
    size: str = Field(description="Size comparisons and dimensions")
    composition: str = Field(description="What it's made of (gases, rocks, ice, etc.)")
    special: str = Field(description="Unique or interesting features that make it special")
    notes: str = Field(description="Additional fun facts and interesting information")


CELESTIAL_FIELDS: tuple[str, ...] = tuple(CelestialInfo.model_fields)


class IdentifyRequest(BaseModel):
    type: Literal["text", "image"]
    query: str | None = None
    image: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "IdentifyRequest":
        if self.type == "text":
            if not self.query or not self.query.strip():
                raise ValueError("query is required for text requests")
            if self.image:
                raise ValueError("text requests must not carry an image")
        else:
            if not self.image:
                raise ValueError("image is required for image requests")
            if self.query:
                raise ValueError("image requests must not carry a query")
        return self


class ErrorResponse(BaseModel):
    error: str
