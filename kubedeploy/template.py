"""Manifest template rendering.

Templates are Jinja2 with build metadata in scope::

    metadata:
      name: {{ repo.name }}-{{ build.branch | lowercase }}
    ...
          image: registry.example.com/app:{{ .Build.Commit | truncate(8) }}

Fields are reachable in lowercase (``build.commit``) and in the capitalised
form used by Drone plugin templates (``Build.Commit``). A leading dot on a
name is ignored so Go-style placeholders keep working.
"""

import base64
import re
import time
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

import jinja2

from kubedeploy.config import PluginConfig
from kubedeploy.errors import TEMPLATE_STEP, TemplateReadError, TemplateRenderError

# Fields of the connection config that may be used in templates.
# The token and CA never are.
_PUBLIC_KUBE_FIELDS = ('server', 'namespace', 'template')

_TAG_RE = re.compile(r'(\{\{|\{%)(.*?)(\}\}|%\})', re.DOTALL)
# A string literal is kept as-is, any other match is a leading dot to drop.
_LEADING_DOT_RE = re.compile(
    r'''("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')'''
    r'''|(?<![\w\)\]\.'"])\.(?=[A-Za-z_])'''
)


def _strip_leading_dots(text: str) -> str:
    def drop_dot(match):
        return match.group(1) or ''

    def fix(match):
        return match.group(1) + _LEADING_DOT_RE.sub(drop_dot, match.group(2)) + match.group(3)
    return _TAG_RE.sub(fix, text)


def _with_aliases(values: Dict[str, Any]) -> Dict[str, Any]:
    """Expose each key both as-is and capitalised (``commit`` and ``Commit``)."""
    aliased = dict(values)
    for key, value in values.items():
        aliased[key[:1].upper() + key[1:]] = value
    return aliased


def template_context(config: PluginConfig) -> Dict[str, Any]:
    """Build the variables available to a manifest template."""
    kube = {name: getattr(config.kube, name) for name in _PUBLIC_KUBE_FIELDS}
    sections = {
        'repo': _with_aliases(asdict(config.repo)),
        'build': _with_aliases(asdict(config.build)),
        'job': _with_aliases(asdict(config.job)),
        'config': _with_aliases(kube),
    }
    return _with_aliases(sections)


def format_duration(seconds: int) -> str:
    """Format a number of seconds like ``1h2m3s``."""
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def _datetime(timestamp: int, fmt: str = "%Y-%m-%dT%H:%M:%SZ", tz: Optional[str] = None) -> str:
    zone = ZoneInfo(tz) if tz else timezone.utc
    return datetime.fromtimestamp(int(timestamp), tz=zone).strftime(fmt)


def _since(timestamp: int) -> str:
    return format_duration(int(time.time()) - int(timestamp))


def _duration(start: int, end: int) -> str:
    return format_duration(int(end) - int(start))


def _truncate(value: Any, length: int) -> str:
    text = str(value)
    if length < 0:
        return text
    return text[:length]


def _uppercasefirst(value: Any) -> str:
    text = str(value)
    return text[:1].upper() + text[1:]


def _regex_replace(value: Any, pattern: str, replacement: str) -> str:
    return re.sub(pattern, replacement, str(value))


def _b64enc(value: Any) -> str:
    return base64.b64encode(str(value).encode("utf-8")).decode("ascii")


def _b64dec(value: Any) -> str:
    return base64.b64decode(str(value)).decode("utf-8")


def _build_status(build: Any) -> str:
    if isinstance(build, dict):
        return build.get('status', '')
    return getattr(build, 'status', '')


def get_template_env() -> jinja2.Environment:
    """Get the Jinja2 environment used for manifest rendering."""
    env = jinja2.Environment(
        loader=jinja2.BaseLoader(),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters.update({
        'uppercase': lambda v: str(v).upper(),
        'lowercase': lambda v: str(v).lower(),
        'uppercasefirst': _uppercasefirst,
        'truncate': _truncate,
        'datetime': _datetime,
        'since': _since,
        'duration': _duration,
        'regex_replace': _regex_replace,
        'b64enc': _b64enc,
        'b64dec': _b64dec,
    })
    env.tests.update({
        'success': lambda build: _build_status(build) == 'success',
        'failure': lambda build: _build_status(build) == 'failure',
    })
    return env


def render_trim(text: str, config: PluginConfig) -> str:
    """Render template text and strip surrounding whitespace.

    Raises:
        TemplateRenderError: On syntax errors, unknown variables or failing filters
    """
    env = get_template_env()
    try:
        template = env.from_string(_strip_leading_dots(text))
        rendered = template.render(**template_context(config))
    except (jinja2.TemplateError, ValueError, TypeError, LookupError) as e:
        raise TemplateRenderError(TEMPLATE_STEP, e) from e
    return rendered.strip()


def open_and_render(template_file: str, config: PluginConfig) -> str:
    """Open the template file and substitute variables into it.

    Raises:
        TemplateReadError: If the file cannot be read
        TemplateRenderError: If substitution fails
    """
    try:
        text = Path(template_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateReadError(TEMPLATE_STEP, e) from e
    return render_trim(text, config)
