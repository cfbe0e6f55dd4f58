"""
User-facing text for advisories, locations and scan confidence (th/en).
"""
import re
from typing import Optional

from pydantic import BaseModel

from farmcore.domain.models import ReasonCode, SprayAdvisory, SprayState

TRANSLATIONS = {
    "th": {
        "spray_good": "เหมาะสม",
        "spray_caution": "ระมัดระวัง",
        "spray_dont": "งดฉีดพ่น",
        "reason_rain": "เนื่องจากมีโอกาสฝนตก",
        "reason_wind": "เนื่องจากลมแรง",
        "reason_caution": "ควรใช้ความระมัดระวัง",
        "reason_good": "สภาพอากาศเหมาะสม",
        "location_not_set": "ยังไม่ระบุตำแหน่ง",
    },
    "en": {
        "spray_good": "Good",
        "spray_caution": "Caution",
        "spray_dont": "Don't spray",
        "reason_rain": "Because of expected rain",
        "reason_wind": "Because of strong wind",
        "reason_caution": "Use caution",
        "reason_good": "Weather looks suitable",
        "location_not_set": "Location not set",
    },
}

STATE_COLORS = {
    SprayState.GOOD: "#4CAF50",
    SprayState.CAUTION: "#FF9800",
    SprayState.DO_NOT_SPRAY: "#f44336",
}

STATE_TEXT_KEYS = {
    SprayState.GOOD: "spray_good",
    SprayState.CAUTION: "spray_caution",
    SprayState.DO_NOT_SPRAY: "spray_dont",
}

REASON_TEXT_KEYS = {
    ReasonCode.GOOD: "reason_good",
    ReasonCode.RAIN: "reason_rain",
    ReasonCode.WIND: "reason_wind",
    ReasonCode.CAUTION: "reason_caution",
}

ADMIN_PREFIXES = {
    "th": ["ตำบล", "จังหวัด"],
    "en": ["Sub-district", "Province"],
}


class AdvisoryText(BaseModel):
    text: str
    reason: str
    color: str


def translate(key: str, lang: str = "th") -> str:
    return TRANSLATIONS.get(lang, TRANSLATIONS["en"]).get(key, key)


def describe_advisory(advisory: SprayAdvisory, lang: str = "th") -> AdvisoryText:
    return AdvisoryText(
        text=translate(STATE_TEXT_KEYS[advisory.state], lang),
        reason=translate(REASON_TEXT_KEYS[advisory.reason_code], lang),
        color=STATE_COLORS[advisory.state],
    )


def format_location_display(place_text: Optional[str], lang: str = "th") -> str:
    """Strip administrative labels from a place text for display."""
    if not place_text or not place_text.strip():
        return translate("location_not_set", lang)
    
    formatted = place_text.strip()
    for prefix in ADMIN_PREFIXES.get(lang, ADMIN_PREFIXES["en"]):
        formatted = re.sub(rf"{re.escape(prefix)}\s*,?\s*", "", formatted)
    
    formatted = re.sub(r",\s*,", ",", formatted)
    formatted = re.sub(r",\s*$", "", formatted)
    formatted = re.sub(r"^\s*,", "", formatted).strip()
    
    return formatted or translate("location_not_set", lang)


def confidence_level(confidence_percent: float) -> str:
    if confidence_percent >= 80:
        return "high"
    if confidence_percent >= 60:
        return "medium"
    return "low"
