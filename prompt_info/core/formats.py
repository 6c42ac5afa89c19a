"""Render a prompt payload in several text interchange formats."""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import yaml

SAMPLE_PROMPT = "Summarize the latest product launch in 3 bullet points."
META = {"source": "prompt-info", "format": "comparison"}


@dataclass(frozen=True)
class FormatCard:
    key: str
    label: str
    description: str
    content: str


def _toon(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    lines = ["prompt:", f'  text: "{escaped}"', "meta:"]
    lines.extend(f'  {key}: "{value}"' for key, value in META.items())
    return "\n".join(lines)


def _yaml(text: str) -> str:
    payload = {"prompt": {"text": text}, "meta": dict(META)}
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True).rstrip("\n")


def _xml(text: str) -> str:
    root = ET.Element("root")
    ET.SubElement(ET.SubElement(root, "prompt"), "text").text = text
    meta = ET.SubElement(root, "meta")
    for key, value in META.items():
        ET.SubElement(meta, key).text = value
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def _csv(text: str) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["field", "value"])
    writer.writerow(["prompt", text])
    for key, value in META.items():
        writer.writerow([f"meta_{key}", value])
    return buf.getvalue().rstrip("\n")


def build_formats(prompt: str) -> list[FormatCard]:
    """Render the prompt (or the sample prompt when blank) in every format."""
    text = prompt.strip() or SAMPLE_PROMPT
    data = {"prompt": text, "meta": dict(META)}
    return [
        FormatCard("toon", "TOON", "Structured text (example)", _toon(text)),
        FormatCard("json", "JSON", "Readable JSON", json.dumps(data, indent=2, ensure_ascii=False)),
        FormatCard(
            "json-compact",
            "JSON compact",
            "Minified JSON",
            json.dumps(data, separators=(",", ":"), ensure_ascii=False),
        ),
        FormatCard("yaml", "YAML", "Common config format", _yaml(text)),
        FormatCard("xml", "XML", "Tagged data", _xml(text)),
        FormatCard("csv", "CSV", "Flat rows", _csv(text)),
    ]
