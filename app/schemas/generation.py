from pydantic import BaseModel, ConfigDict, Field


class GenerateVideoIn(BaseModel):
    """Body of POST /generate-video. Fields are optional so missing ones get a 400, not a 422."""
    model_config = ConfigDict(populate_by_name=True)

    image: str | None = None
    prompt: str | None = None
    aspect_ratio: str | None = Field(default=None, alias="aspectRatio")


class GenerateImageOpenAIIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    image_base64: str | None = Field(default=None, alias="imageBase64")
    mask_base64: str | None = Field(default=None, alias="maskBase64")
    size: int | str | None = None


class BoothSettingsIn(BaseModel):
    """Subset of the kiosk's pb_settings that drives model selection."""
    model_config = ConfigDict(populate_by_name=True)

    selected_model: str | None = Field(default=None, alias="selectedModel")
    gpt_model_size: int | str | None = Field(default=None, alias="gptModelSize")


class GenerateImageIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str | None = None
    prompt: str | None = None
    aspect_ratio: str | None = Field(default=None, alias="aspectRatio")
    settings: BoothSettingsIn | None = None
