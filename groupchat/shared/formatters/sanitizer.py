"""Terminal-safe sanitizing of untrusted message text and markdown.

Everything here sits between model/attacker influenced content and a
terminal emulator, so the rules are strict:

* Bidi override/isolate characters are removed.
* C0 controls and DEL become their Unicode "control picture" glyphs, C1
  controls become ``<0xHH>`` tokens. No raw control byte survives.
* Markdown links, autolinks and bare URLs are only clickable when the
  policy enables hyperlinks *and* the scheme is allowlisted. Everything
  else is defanged (``https:`` becomes ``https&#58;``) but stays readable.
* URLs that cannot be parsed fail closed to plain sanitized text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import SplitResult, quote, urlsplit

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_SCHEMES: frozenset[str] = frozenset({"https", "http", "mailto"})

_C1_CONTROL_MIN = 0x80
_C1_CONTROL_MAX = 0x9F

_BIDI_CONTROL_RE = re.compile("[\u200e\u200f\u202a-\u202e\u2066-\u2069]")
_RAW_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_MARKDOWN_LINK_RE = re.compile(r"(!?)\[([^\]]*)\]\(([^)\n]+)\)")
_MARKDOWN_AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9+.-]*:[^>\s]+)>")
_BARE_URL_RE = re.compile(
    r"(?<![A-Za-z0-9_])((?:https?://|mailto:)[^\s<>()\[\]]+)", re.IGNORECASE
)
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*):")

# Schemes that always carry an authority (host) component.
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = "/?%:@!$&'()*+,;=-._~"


@dataclass(frozen=True)
class SanitizePolicy:
    """Hyperlink policy for markdown output.

    Hyperlinks are disabled by default; when enabled, only schemes in
    ``allowed_schemes`` become clickable.
    """

    hyperlinks_enabled: bool = False
    allowed_schemes: frozenset[str] = field(default=DEFAULT_ALLOWED_SCHEMES)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "allowed_schemes",
            frozenset(str(s).lower() for s in self.allowed_schemes),
        )

    def allows(self, scheme: str) -> bool:
        return self.hyperlinks_enabled and scheme.lower() in self.allowed_schemes


@dataclass(frozen=True)
class SanitizedLink:
    """What to show for a URL, and what (if anything) may be clicked."""

    display: str
    hyperlink_url: str | None = None


# ── Plain text ──


def _visible_control(code: int) -> str:
    if code <= 0x1F:
        return chr(0x2400 + code)
    if code == 0x7F:
        return "\u2421"
    return f"<0x{code:02X}>"


def strip_bidi_controls(text: str) -> str:
    return _BIDI_CONTROL_RE.sub("", text)


def sanitize_plain_text(
    text: str,
    *,
    preserve_newlines: bool = True,
    preserve_tabs: bool = True,
) -> str:
    """Neutralize bidi and control characters in untrusted text.

    Bidi controls are removed first, then each remaining code point is
    checked. Newlines and tabs pass through when preserved.
    """
    out: list[str] = []
    for char in strip_bidi_controls(text):
        code = ord(char)
        if char == "\n" and preserve_newlines:
            out.append(char)
        elif char == "\t" and preserve_tabs:
            out.append(char)
        elif code <= 0x1F or code == 0x7F or _C1_CONTROL_MIN <= code <= _C1_CONTROL_MAX:
            out.append(_visible_control(code))
        else:
            out.append(char)
    return "".join(out)


def _sanitize_inline(text: str) -> str:
    return sanitize_plain_text(text, preserve_newlines=False, preserve_tabs=False)


# ── URLs ──


def defang_url(url: str) -> str:
    """Make ``scheme:`` non-activating while keeping the URL readable."""
    match = _SCHEME_RE.match(url)
    if not match:
        return url
    scheme = match.group(1)
    return f"{scheme}&#58;{url[len(scheme) + 1:]}"


def _canonical_host(hostname: str) -> str | None:
    if hostname.isascii():
        return hostname.lower()
    try:
        return hostname.encode("idna").decode("ascii").lower()
    except UnicodeError:
        return None


def _canonicalize(parts: SplitResult) -> str | None:
    scheme = parts.scheme.lower()
    path = quote(parts.path, safe=_PATH_SAFE)
    query = f"?{quote(parts.query, safe=_QUERY_SAFE)}" if parts.query else ""
    fragment = f"#{quote(parts.fragment, safe=_QUERY_SAFE)}" if parts.fragment else ""

    if not parts.netloc and scheme not in _SPECIAL_SCHEMES:
        return f"{scheme}:{path}{query}{fragment}"

    hostname = parts.hostname or ""
    if scheme != "file" and not hostname:
        return None
    if any(ch.isspace() for ch in hostname):
        return None
    host = _canonical_host(hostname)
    if host is None:
        return None
    if ":" in host:
        host = f"[{host}]"

    port = parts.port
    port_text = f":{port}" if port is not None and port != _DEFAULT_PORTS.get(scheme) else ""
    if not path and scheme in _SPECIAL_SCHEMES:
        path = "/"
    return f"{scheme}://{host}{port_text}{path}{query}{fragment}"


def parse_url(raw_url: str) -> tuple[str, str] | None:
    """Parse a URL candidate into ``(scheme, canonical_url)``.

    Hidden bidi/control characters are removed before parsing. Returns
    None when the candidate is not an absolute URL we can rebuild.
    """
    cleaned = _RAW_CONTROL_RE.sub("", strip_bidi_controls(raw_url)).strip()
    if not cleaned or not _SCHEME_RE.match(cleaned):
        return None
    try:
        parts = urlsplit(cleaned)
        canonical = _canonicalize(parts)
    except ValueError as exc:
        logger.debug("parse_url: rejected %r: %s", cleaned, exc)
        return None
    if canonical is None:
        return None
    return parts.scheme.lower(), canonical


def sanitize_url(raw_url: str, policy: SanitizePolicy | None = None) -> SanitizedLink:
    """Resolve a URL against *policy*.

    The display text is always sanitized; a hyperlink target is only
    returned for parseable URLs with an allowed scheme.
    """
    policy = policy or SanitizePolicy()
    parsed = parse_url(raw_url)
    if parsed is None:
        return SanitizedLink(display=_sanitize_inline(raw_url))

    scheme, canonical = parsed
    display = _sanitize_inline(canonical)
    if not policy.allows(scheme):
        return SanitizedLink(display=display)
    return SanitizedLink(display=display, hyperlink_url=display)


# ── Markdown ──


def parse_markdown_destination(raw_destination: str) -> tuple[str, str]:
    """Split a link destination into ``(url, title)``."""
    trimmed = raw_destination.strip()
    if not trimmed:
        return "", ""

    if trimmed.startswith("<"):
        close = trimmed.find(">")
        if close > 0:
            return trimmed[1:close].strip(), trimmed[close + 1:].strip()

    parts = trimmed.split(None, 1)
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1].strip()


def sanitize_markdown(markdown: str, policy: SanitizePolicy | None = None) -> str:
    """Sanitize untrusted markdown and enforce the hyperlink policy.

    The whole text goes through :func:`sanitize_plain_text` first; links,
    autolinks and (when hyperlinks are off) bare URLs are then rewritten.
    Image syntax is emitted as a link or as defanged text.
    """
    policy = policy or SanitizePolicy()
    output = sanitize_plain_text(markdown)

    def _replace_link(match: re.Match[str]) -> str:
        label = sanitize_plain_text(match.group(2))
        url, title = parse_markdown_destination(match.group(3))
        link = sanitize_url(url, policy)
        if link.hyperlink_url:
            safe_title = f" {sanitize_plain_text(title)}" if title else ""
            return f"[{label}]({link.hyperlink_url}{safe_title})"
        if not link.display:
            return label
        return f"{label} ({defang_url(link.display)})"

    def _replace_autolink(match: re.Match[str]) -> str:
        link = sanitize_url(match.group(1), policy)
        if link.hyperlink_url:
            return f"<{link.hyperlink_url}>"
        return defang_url(link.display)

    def _replace_bare(match: re.Match[str]) -> str:
        return defang_url(sanitize_url(match.group(1), policy).display)

    output = _MARKDOWN_LINK_RE.sub(_replace_link, output)
    output = _MARKDOWN_AUTOLINK_RE.sub(_replace_autolink, output)
    if not policy.hyperlinks_enabled:
        output = _BARE_URL_RE.sub(_replace_bare, output)
    return output
