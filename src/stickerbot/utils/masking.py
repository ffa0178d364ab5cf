"""Masking identitas (nomor WhatsApp) dan URL gateway agar tidak bocor ke log."""

from urllib.parse import urlparse

JID_VISIBLE_PREFIX = 4
JID_VISIBLE_SUFFIX = 3


def mask_jid(jid: str | None) -> str:
    """
    Samarkan bagian nomor dari JID, misalnya ``6281234567890@s.whatsapp.net``
    menjadi ``6281******890@s.whatsapp.net``. Domain JID tetap terlihat agar
    grup dan chat pribadi masih bisa dibedakan di log.
    """
    if not jid:
        return "[jid_kosong]"

    user, sep, domain = jid.partition("@")
    if len(user) <= JID_VISIBLE_PREFIX + JID_VISIBLE_SUFFIX:
        masked_user = "*" * len(user)
    else:
        hidden = len(user) - JID_VISIBLE_PREFIX - JID_VISIBLE_SUFFIX
        masked_user = f"{user[:JID_VISIBLE_PREFIX]}{'*' * hidden}{user[-JID_VISIBLE_SUFFIX:]}"
    return f"{masked_user}{sep}{domain}"


def mask_url(url: str) -> str:
    """
    Hanya protokol, hostname, dan port yang ditampilkan. Userinfo, path,
    query, dan fragment dibuang.
    """
    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            return "[url_masked]"
        port = f":{parsed.port}" if parsed.port else ""
        return f"{parsed.scheme}://{parsed.hostname}{port}"
    except (ValueError, TypeError, AttributeError):
        # port di luar rentang memicu ValueError; None memicu TypeError/AttributeError
        return "[url_masked]"
