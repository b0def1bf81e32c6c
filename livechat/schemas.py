from pydantic import BaseModel, ConfigDict, Field


class MessageItem(BaseModel):
    chat_id: int = Field(serialization_alias="chatID")
    message: str
    name: str


class PostMessageRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(default="")


class DeleteMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int = Field(alias="messageID", gt=0, lt=2**63)


class DeleteMessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    issues: list[str] = Field(default_factory=list)
