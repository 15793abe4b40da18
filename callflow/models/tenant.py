"""
Tenant Configuration Models
Per-number settings for the businesses answering through CallFlow
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_BUSINESS_NAME = "CallFlow Client"
DEFAULT_BUSINESS_HOURS = "10 AM to 6 PM"
DEFAULT_AI_STYLE = "polite and professional"


class TenantConfig(BaseModel):
    """
    Settings for one tenant, keyed by the dialed number.

    Stored records use camelCase keys (``businessName``, ``aiStyle``...);
    snake_case names are accepted as well.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "businessName": "Acme Dental",
                "businessHours": "9 AM to 5 PM",
                "humanAgent": "+14155550100",
                "aiStyle": "warm and concise",
                "enableHumanTransfer": True
            }
        }
    )

    business_name: str = Field(default=DEFAULT_BUSINESS_NAME, alias="businessName")
    business_hours: str = Field(default=DEFAULT_BUSINESS_HOURS, alias="businessHours")
    human_agent: Optional[str] = Field(
        default=None,
        alias="humanAgent",
        description="Number or SIP address calls are transferred to"
    )
    ai_style: str = Field(default=DEFAULT_AI_STYLE, alias="aiStyle")
    enable_human_transfer: bool = Field(default=True, alias="enableHumanTransfer")

    def get_system_prompt(self) -> str:
        """Persona prompt that seeds every call session"""
        return (
            f"You are an AI receptionist for {self.business_name}.\n"
            f"Style: {self.ai_style}.\n"
            f"Business hours: {self.business_hours}."
        )

    def get_greeting(self) -> str:
        """Get formatted greeting message"""
        return f"Hello. You have reached {self.business_name}. How can I help you today?"

    def get_farewell(self) -> str:
        """Get formatted farewell message"""
        return f"Thank you for calling {self.business_name}. Goodbye."
