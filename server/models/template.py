from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from server.models.organization import OrganizationTemplate

# HTML checkboxes submit this value when ticked and nothing otherwise.
CHECKBOX_ON = "on"


class Template(BaseModel):
    id: str
    slug: str
    title: str
    description: str = ""
    short_title: str | None = None
    repository_url: str
    image_url: str | None = None
    priority: int = 0
    is_live: bool = True


class AddTemplatePayload(BaseModel):
    """Form submitted to instantiate a template for an organization."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=3, max_length=100)
    template_id: str = Field(alias="templateId")
    private: bool = False
    app_authorization_id: str = Field(alias="appAuthorizationId")

    @field_validator("private", mode="before")
    @classmethod
    def _collapse_checkbox(cls, value):
        if value is None or value is False:
            return False
        if value is True or value == CHECKBOX_ON:
            return True
        raise ValueError(f'Invalid literal value, expected "{CHECKBOX_ON}"')


class AddTemplateError(BaseModel):
    type: Literal["error"] = "error"
    message: str


class AddTemplateSuccess(BaseModel):
    type: Literal["success"] = "success"
    template: OrganizationTemplate


AddTemplateResult = Union[AddTemplateError, AddTemplateSuccess]
