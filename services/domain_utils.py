from __future__ import annotations

import re
import unicodedata
from typing import Optional
from urllib.parse import unquote, urlparse

import tldextract

from services.errors import ValidationError


# Ordered accepted public-profile path shapes; group 1 is the identifier.
# Anything after the identifier (locale, /details/..., /pub/ id digits) is ignored.
PROFILE_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:https?://)?(?:[\w-]+\.)*linkedin\.com/in/([^/?#]+)", re.IGNORECASE),
    re.compile(r"^(?:https?://)?(?:[\w-]+\.)*linkedin\.com/pub/([^/?#]+)", re.IGNORECASE),
)


def extract_apex_domain(url_or_domain: Optional[str]) -> Optional[str]:
    if not url_or_domain:
        return None
    text = str(url_or_domain).strip().lower()
    if not text.startswith('http://') and not text.startswith('https://'):
        text = f"http://{text}"
    ext = tldextract.extract(text)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return None


def extract_profile_identifier(url: Optional[str]) -> str:
    """Return the trailing path segment of an accepted public-profile URL.

    Raises ValidationError when the URL matches none of PROFILE_URL_PATTERNS.
    """
    text = (url or "").strip()
    # Query string and fragment never carry the identifier
    text = re.split(r"[?#]", text, maxsplit=1)[0]
    for pattern in PROFILE_URL_PATTERNS:
        m = pattern.match(text)
        if m:
            return unquote(m.group(1))
    raise ValidationError(f"Could not extract a profile identifier from URL: {url!r}")


def normalize_linkedin_profile_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    u = urlparse(url if "://" in url else f"https://{url}")
    host = (u.netloc or '').lower().replace('www.', '')
    host = re.sub(r"^[a-z]{2}\.linkedin\.com$", "linkedin.com", host)
    path = (u.path or '').rstrip('/')
    if not host or 'linkedin.com' not in host:
        return None
    parts = [p for p in path.split('/') if p]
    if len(parts) >= 2 and parts[0] in ('in', 'pub'):
        # Keep only /in/{slug}; drop trailing locale segments (e.g., /de, /en)
        slug = unicodedata.normalize('NFKC', unquote(parts[1])).strip().lower()
        # Remove invisible characters occasionally present
        slug = slug.replace('\u200b', '').replace('\u200c', '').replace('\u200d', '')
        return f"https://linkedin.com/{parts[0]}/{slug}"
    return f"https://linkedin.com{path}" if path else None
