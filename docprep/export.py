"""
Projections of a finished document: pretty JSON and a standalone HTML report.
"""

import base64
from datetime import datetime, timezone

from jinja2 import Template

from docprep.models import Attachment, Document

REPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ document.file_path }} - docprep</title>
    <style>
        body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif;
               margin: 0; padding: 20px; background: #f5f5f5; color: #222; }
        .container { max-width: 1100px; margin: 0 auto; background: #fff;
                     padding: 24px; border-radius: 6px; }
        h1 { margin-top: 0; }
        .section { margin-bottom: 24px; }
        .metadata { display: grid; grid-template-columns: 180px 1fr; gap: 6px 12px; }
        .label { font-weight: bold; color: #555; }
        .value { word-break: break-all; }
        .prompt-part { white-space: pre-wrap; font-family: monospace; background: #fafafa;
                       border: 1px solid #ddd; padding: 12px; margin-bottom: 12px; }
        .attachment img { max-width: 100%; border: 1px solid #ddd; }
        hr { border: none; border-top: 1px solid #eee; margin: 24px 0; }
    </style>
</head>
<body>
<div class="container">
    <h1>Document Processing Results</h1>

    <div class="section">
        <h2>Basic Information</h2>
        <div class="metadata">
            <div class="label">File Type:</div><div class="value">{{ document.file_type }}</div>
            <div class="label">File Path:</div><div class="value">{{ document.file_path }}</div>
            <div class="label">Strategy:</div><div class="value">{{ document.strategy }}</div>
            <div class="label">System Prompt:</div><div class="value">{{ document.system }}</div>
        </div>
    </div>
    <hr>

    {% if document.prompt_parts %}
    <div class="section">
        <h2>Extracted Content</h2>
        {% for part in document.prompt_parts %}
        <div class="prompt-part">{{ part }}</div>
        {% endfor %}
    </div>
    <hr>
    {% endif %}

    {% if document.attachments %}
    <div class="section">
        <h2>Attachments</h2>
        {% for attachment in document.attachments %}
        <div class="attachment">
            <h3>Page {{ attachment.page }}</h3>
            <img src="{{ data_uri(attachment) }}" alt="Page {{ attachment.page }}">
        </div>
        {% endfor %}
    </div>
    <hr>
    {% endif %}

    {% if document.metadata is not none %}
    {% set metadata = document.metadata %}
    <div class="section">
        <h2>Processing Metadata</h2>
        <div class="metadata">
            <div class="label">Started At:</div><div class="value">{{ format_timestamp(metadata.started_at) }}</div>
            <div class="label">Completed At:</div><div class="value">{{ format_timestamp(metadata.completed_at) }}</div>
            <div class="label">Duration:</div><div class="value">{{ metadata.total_duration_ms }} ms</div>
            <div class="label">File Size:</div><div class="value">{{ metadata.original_file_size }} bytes</div>
            {% if metadata.errors %}
            <div class="label">Errors:</div>
            <div class="value">
                {% for error in metadata.errors %}<div>{{ error }}</div>{% endfor %}
            </div>
            {% endif %}
            {% if metadata.steps %}
            <div class="label">Processing Steps:</div>
            <div class="value">
                {% for step in metadata.steps %}
                <div>{{ step.name }} - {{ step.duration_ms }} ms ({{ step.memory_mb }}MB)</div>
                {% endfor %}
            </div>
            {% endif %}
        </div>
    </div>
    {% endif %}
</div>
</body>
</html>
"""

_report_template = Template(REPORT_TEMPLATE, autoescape=True, trim_blocks=True, lstrip_blocks=True)


def to_json(document: Document) -> str:
    """Serialize a document as indented JSON; attachment bytes become base64 text."""
    return document.model_dump_json(indent=2)


def format_timestamp(epoch_seconds: int) -> str:
    if not epoch_seconds:
        return "-"
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def data_uri(attachment: Attachment) -> str:
    encoded = base64.b64encode(attachment.data).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def to_html(document: Document) -> str:
    """
    Render a document as a self-contained HTML report.

    All document text is autoescaped, so data tags in prompt parts show up
    literally. Attachments are inlined as base64 PNG data URIs.
    """
    return _report_template.render(
        document=document,
        format_timestamp=format_timestamp,
        data_uri=data_uri,
    )
