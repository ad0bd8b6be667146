"""CAZI configuration.

Defines the validated configuration model shared by the local policy
engine, the reference repositories, and the application service.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CAZIConfig(BaseModel):
    """Configuration for a CAZI deployment.

    All fields carry defaults so that ``CAZIConfig()`` is sufficient for
    development and tests.
    """

    model_config = ConfigDict(strict=True)

    decision_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=600.0,
        description=(
            "Deadline shared by an authorization call and the repository "
            "query that enforces its decision."
        ),
    )
    subject_type: str = Field(
        default="user",
        description="Resource type accepted for subject references.",
    )
    object_type: str = Field(
        default="widget",
        description="Resource type the local engine makes decisions about.",
    )
    owner_field: str = Field(
        default="owner_id",
        description="Record field compared against the subject id.",
    )
    record_alias: str = Field(
        default="widget",
        description=(
            "Variable name under which a record is also bound when "
            "filters are evaluated (``widget.owner_id``)."
        ),
    )
    jwt_key: str | None = Field(
        default=None,
        repr=False,
        description=(
            "Key used to verify ``jwt`` opaque-token subjects.  When unset, "
            "token subjects are rejected."
        ),
    )
    jwt_algorithms: list[str] = Field(
        default=["HS256"],
        description="Algorithms accepted when verifying token subjects.",
    )
    jwt_audience: str | None = Field(
        default=None,
        description="Expected ``aud`` claim of token subjects, if any.",
    )
