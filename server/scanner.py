"""Staff-facing scanner page."""

from __future__ import annotations

import html
import json
import logging
from pathlib import Path
from string import Template
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_HERE = Path(__file__).resolve().parent
DEFAULT_LABELS_FILE = _HERE / "labels.json"
TEMPLATE_FILE = _HERE / "templates" / "scan.html"


def load_labels(path: Optional[str] = None) -> Dict[str, str]:
    """Return UI labels, overlaying ``path`` on the bundled defaults.

    Missing keys in a custom file fall back to the bundled text.
    """
    labels = json.loads(DEFAULT_LABELS_FILE.read_text(encoding="utf-8"))
    if path:
        try:
            custom = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Cannot read labels file %s (%s), using defaults", path, exc)
        else:
            labels.update({k: str(v) for k, v in custom.items()})
    return labels


def render_scan_page(labels: Dict[str, str]) -> str:
    template = Template(TEMPLATE_FILE.read_text(encoding="utf-8"))
    # "</" must not appear inside the inline script
    labels_json = json.dumps(labels, ensure_ascii=False).replace("</", "<\\/")
    return template.safe_substitute(
        page_title=html.escape(labels.get("page_title", "")),
        header_title=html.escape(labels.get("header_title", "")),
        labels_json=labels_json,
    )
