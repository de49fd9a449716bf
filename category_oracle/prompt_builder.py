"""Structured prompt builders for the category oracle."""

import json

from category_oracle.schema import CategoryVerdict

_VERDICT_SCHEMA_JSON = json.dumps(CategoryVerdict.model_json_schema(by_alias=True), indent=2)

_VERDICT_EXAMPLE_OUTPUT = json.dumps(
    {
        "isValidCategory": False,
        "validationReason": (
            "The description presents a web browser with an optional VPN toggle; "
            "a Proxy app must provide VPN service as its core function."
        ),
    },
    indent=2,
)

_VALIDATOR_INSTRUCTIONS = """\
You are an expert app category validator.

You will determine if the provided app description accurately reflects the assigned category.

STRICT RULES:
- Judge only from the app name, description and category given below.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_CATEGORY_RULES = """\
- If the Category is "Microlending", the app description MUST explicitly state that users \
can take out loans or borrow money. If it does not, it is not a valid "Microlending" app.
- If the Category is "Proxy", the app MUST primarily provide VPN services. It cannot be just \
a web browser with integrated VPN capabilities; the core function must be VPN provision. If the \
description does not clearly indicate it offers VPN services as a primary feature, it is not a \
valid "Proxy" app.
- If the Category is "Antivirus", the app MUST mainly provide antivirus and malware protection \
services. While it might have other security features, its core identity must be as an antivirus \
tool. If the description doesn't emphasize antivirus protection as a primary feature, it is not a \
valid "Antivirus" app.
- If the Category is "Gambling", the app MUST involve real betting, wagering, or participation in \
casino-style games for money or items of monetary value. Apps that are merely informational, \
provide tutorials about gambling, show lottery results without direct participation, or are \
"casino-like" games without real wagering are NOT valid "Gambling" apps.
"""

_LISTING_TEMPLATE = """\
App: {app}
Description: {description}
Category: {category}
"""

_DESCRIPTION_TEMPLATE = """\
You are an expert in generating engaging and informative product descriptions. \
Generate a description for an app with the following name and category:

App Name: {app_name}
Category: {category}

Return strictly valid JSON of the form {{"description": "<text>"}} and nothing else.
"""


class CategoryPromptBuilder:
    """Builds a deterministic prompt asking whether a description fits its category."""

    def build_prompt(self, app: str, description: str, category: str) -> str:
        """Build the full validation prompt for one app listing.

        Args:
            app: App name.
            description: App description as listed.
            category: Category the listing claims.

        Returns:
            A fully formatted prompt string ready for LLM consumption.
        """
        listing = _LISTING_TEMPLATE.format(app=app, description=description, category=category)

        return (
            f"{_VALIDATOR_INSTRUCTIONS}\n"
            f"# APP LISTING\n\n{listing}\n"
            f"# SPECIFIC CATEGORY RULES\n\n{_CATEGORY_RULES}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"Your response MUST conform to this JSON schema:\n\n"
            f"```json\n{_VERDICT_SCHEMA_JSON}\n```\n\n"
            f"# EXAMPLE OUTPUT\n\n"
            f"```json\n{_VERDICT_EXAMPLE_OUTPUT}\n```\n\n"
            f"# TASK\n\n"
            f"Determine if the description is appropriate for the category and give the reason "
            f"for your decision. Set isValidCategory to true if it is a valid category, "
            f"otherwise set it to false."
        )


class DescriptionPromptBuilder:
    """Builds the prompt for generating an app description."""

    def build_prompt(self, app_name: str, category: str) -> str:
        return _DESCRIPTION_TEMPLATE.format(app_name=app_name, category=category)
