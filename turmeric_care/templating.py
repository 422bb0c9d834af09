import os
from fastapi.templating import Jinja2Templates

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(PROJECT_ROOT, "templates")
STATIC_DIR = os.path.join(PROJECT_ROOT, "static")

templates = Jinja2Templates(directory=TEMPLATES_DIR)

SEVERITY_BADGES = {
    "low": "badge-low",
    "moderate": "badge-moderate",
    "high": "badge-high",
}


def severity_badge(severity) -> str:
    value = getattr(severity, "value", severity)
    return SEVERITY_BADGES.get(value, "badge-moderate")


templates.env.filters["severity_badge"] = severity_badge
