"""
Renders the HTML document stored for a shared note.

Only the page shell lives here: the note body arrives already rendered (or
encrypted) from the publishing plugin, and decryption happens in the browser
via the script served from /assets.
"""
import json

from flask import render_template_string
from markupsafe import Markup

from utils.version import check_version

NOTE_TEMPLATE = """<!DOCTYPE html>
<html lang="en"{% if html_attrs %} {{ html_attrs }}{% endif %}>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{{ title }}</title>
    <meta property="og:title" content="{{ title }}">
    {% if description %}<meta name="description" content="{{ description }}">{% endif %}
    {% for url in css_urls %}<link rel="stylesheet" href="{{ url }}">
    {% endfor %}
    {% if width_css %}<style>{{ width_css }}</style>{% endif %}
    {% if mathjax %}<script async src="{{ assets_url }}/mathjax/tex-chtml.js"></script>{% endif %}
</head>
<body{% if body_attrs %} {{ body_attrs }}{% endif %}>
<div class="markdown-preview-view markdown-rendered">
    <div class="markdown-preview-sizer markdown-preview-section" id="template-note-content">
        {% if encrypted %}<div id="encrypted-data" data-payload="{{ encrypted_data }}"></div>{% else %}{{ content | safe }}{% endif %}
    </div>
</div>
<script src="{{ assets_url }}/app.js"></script>
{% if encrypted %}<script src="{{ assets_url }}/{{ decrypt_script }}" data-plugin-version="{{ plugin_version }}"></script>
{% else %}<script>initDocument();</script>{% endif %}
</body>
</html>
"""

_SUPPORTED_ELEMENTS = ('html', 'body')
# Plugins older than this encrypt with the legacy scheme
CURRENT_DECRYPT_VERSION = (1, 2, 0)
LEGACY_DECRYPT_SCRIPT = 'decrypt-v1.1.3.js'
DECRYPT_SCRIPT = 'decrypt.js'


def _text(value):
    return value if isinstance(value, str) else ''


def _width_css(width):
    width = _text(width).replace('"', '').replace("'", '')
    if not width:
        return ''
    return f'.markdown-preview-sizer.markdown-preview-section {{ max-width: {width} !important; margin: 0 auto; }}'


def _element_attrs(elements):
    """Collect class/style overrides for the html and body elements."""
    attrs = {}
    if not isinstance(elements, list):
        return attrs
    for el in elements:
        if not isinstance(el, dict) or el.get('element') not in _SUPPORTED_ELEMENTS:
            continue
        parts = []
        classes = el.get('classes')
        if isinstance(classes, list):
            names = ' '.join(c for c in classes if isinstance(c, str))
            if names:
                parts.append(('class', names))
        style = _text(el.get('style'))
        if style:
            parts.append(('style', style))
        attrs[el['element']] = parts
    return attrs


def _format_attrs(parts):
    return Markup(" ").join(Markup('{}="{}"').format(name, value) for name, value in parts)


def render_note(template, css_urls, base_web_url, plugin_version=''):
    """Return the note document for a create-note request's template."""
    template = template if isinstance(template, dict) else {}
    encrypted = template.get('encrypted') is not False
    content = template.get('content')
    attrs = _element_attrs(template.get('elements'))
    return render_template_string(
        NOTE_TEMPLATE,
        title='Shared note' if encrypted else (_text(template.get('title')) or 'Shared note'),
        description='' if encrypted else _text(template.get('description')),
        css_urls=css_urls,
        width_css=_width_css(template.get('width')),
        mathjax=bool(template.get('mathJax')),
        encrypted=encrypted,
        encrypted_data=content if isinstance(content, str) else json.dumps(content),
        content=_text(content),
        html_attrs=_format_attrs(attrs.get('html', [])),
        body_attrs=_format_attrs(attrs.get('body', [])),
        assets_url=f'{base_web_url}/assets',
        plugin_version=_text(plugin_version),
        decrypt_script=DECRYPT_SCRIPT if check_version(plugin_version, CURRENT_DECRYPT_VERSION) else LEGACY_DECRYPT_SCRIPT,
    )
