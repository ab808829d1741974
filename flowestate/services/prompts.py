"""
Prompt templates for the language model calls.
"""

from typing import Any, Dict, List

LANGUAGE_NAMES = {
    "es": "Spanish",
    "en": "English",
}

LISTING_PROMPT = """You are an expert real estate copywriter.

A real estate agent has just described a property out loud. Your job is:

1. EXTRACT every piece of structured information that was mentioned:
   - Property type (house, condo, apartment, land, commercial)
   - Price (if mentioned)
   - Full location (address, city, state, zip code)
   - Bedrooms
   - Bathrooms
   - Square feet (sqft)
   - Highlights

2. WRITE a professional, attractive listing:
   - Catchy title (80 characters max)
   - Full description (250-400 words)
   - Tone: professional but warm and welcoming
   - Focused on benefits and lifestyle
   - Highlights the unique features
   - Includes relevant SEO keywords

3. RESPONSE FORMAT (valid JSON):
{
  "title": "Beautiful 3BR Home in Downtown Austin",
  "description": "Discover your dream home in the heart of downtown...",
  "price": 450000,
  "address": "123 Main Street",
  "city": "Austin",
  "state": "TX",
  "zip_code": "78701",
  "bedrooms": 3,
  "bathrooms": 2.5,
  "sqft": 2100,
  "property_type": "house"
}

IMPORTANT RULES:
- If the agent did NOT mention a value, use null
- The price is a number without symbols or commas
- Bathrooms may be decimal (2.5 = 2 full baths + 1 half bath)
- property_type must be one of: house, condo, apartment, land, commercial
- The description reads as prose, not a list of features
- DO NOT invent information that was not mentioned

Agent transcription:"""

TRANSLATION_PROMPT = (
    "You are a professional real estate translator. Translate the following text to {language}. "
    "Maintain the tone and style suitable for real estate listings. "
    "Only provide the translation, no additional text."
)

FLYER_PROMPT_SYSTEM = (
    "You are an expert in visual marketing and in writing prompts for advertising images. "
    "Return ONLY the final optimized prompt."
)

FLYER_PROMPT_TEMPLATE = """Write a short technical prompt for an image model (square 1:1 format)
for a professional real estate advertising flyer.

Property: {property}
Visual style and instructions: {instructions}

Requirements:
- Modern, clean layout with a clear visual hierarchy
- Leave space for the price and the main features
- Photographic quality, natural light
- No small unreadable text

Return only the final prompt."""

_PRICE_RULES = """CRITICAL RULES FOR PRICE:
The price must be the COMPLETE number without symbols, spaces or commas.
- "thousand" / "mil" = 1,000: "200 thousand" -> 200000, "850 mil" -> 850000
- "million" / "millones" = 1,000,000: "2 million" -> 2000000, "3.5 millones" -> 3500000
- Combinations: "1 million 200 thousand" -> 1200000, "half million" -> 500000
- Ignore the currency mentioned (dollars, colones, CRC, USD): "70 million dollars" -> 70000000
- No price, or "by consultation" / "a consultar" -> null"""

_GENERAL_RULES = """GENERAL RULES:
- If the post did NOT mention a basic value, use null
- The currency is configured separately; do NOT include it in the price
- "state" may be a state or a province
- The description reads as prose, not a list of features
- DO NOT invent information that was not mentioned"""


def _describe_field(field: Dict[str, Any], language: str) -> str:
    name = (field.get("field_name_en") or field.get("field_name")) if language == "en" else field.get("field_name")
    if field.get("field_type") == "number":
        kind = "NUMBER (digits only)"
        example = '"2" (if the post says "two water sources")'
    else:
        kind = "TEXT (short answers such as Yes, No, or a brief description)"
        example = '"Yes" if present, "No" if absent, or a brief description'
    return (
        f'   {field.get("icon", "")} "{name}" [key: {field.get("field_key")}]\n'
        f"      - Type: {kind}\n"
        f'      - Placeholder: "{field.get("placeholder") or ""}"\n'
        f"      - Example: {example}"
    )


def build_post_import_prompt(language: str, custom_fields: List[Dict[str, Any]]) -> str:
    """
    System prompt for extracting a listing from a Facebook post.

    Args:
        language: Output language code ("es" or "en")
        custom_fields: Agent custom fields for the target combination

    Returns:
        Prompt text
    """
    language_name = LANGUAGE_NAMES.get(language, "Spanish")
    yes, no = ("Yes", "No") if language == "en" else ("Sí", "No")

    custom_section = ""
    example_custom = ""
    if custom_fields:
        listed = "\n\n".join(_describe_field(field, language) for field in custom_fields)
        custom_section = f"""

4. CUSTOM FIELDS (read carefully):

AVAILABLE FIELDS:
{listed}

CRITICAL RULES FOR CUSTOM FIELDS:
1. ONLY include in "custom_fields_data" the fields the post mentions
2. DO NOT use the field name as the value (never "garage": "Garage")
3. For TEXT fields about presence: "{yes}" when present, "{no}" when absent, or a brief description (max 50 characters)
4. For NUMBER fields: extract ONLY the number ("three lakes" -> "3"); omit the field if no quantity is given
5. Use the field key (not the field name) as the JSON key
6. If the post did NOT mention a field, do NOT include it"""
        example_custom = ',\n  "custom_fields_data": {\n    "example_field": "' + yes + '"\n  }'

    return f"""You are an expert in real estate copywriting and structured information extraction.

You are analyzing a Facebook post about a property. Your job is:

1. EXTRACT all structured information mentioned:
   - Price (if mentioned)
   - Full location (address, city, state/province, zip code)
   - Highlights

2. WRITE a professional, attractive listing IN {language_name.upper()}:
   - Catchy title (80 characters max)
   - Full description (250-300 words)
   - Tone: professional but warm and welcoming
   - Focused on benefits and lifestyle
   - Includes relevant SEO keywords

3. RESPONSE FORMAT (valid JSON):
{{
  "title": "Beautiful 3BR Home in Downtown Austin",
  "description": "Discover your dream home in the heart of downtown...",
  "price": 450000,
  "address": "123 Main Street",
  "city": "Austin",
  "state": "TX",
  "zip_code": "78701"{example_custom}
}}{custom_section}

{_PRICE_RULES}

{_GENERAL_RULES}

Facebook post text:"""
