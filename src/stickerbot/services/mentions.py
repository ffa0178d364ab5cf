from collections.abc import Iterable

from stickerbot.constants import TAGALL_DEFAULT_HEADER
from stickerbot.core.models import MentionMessage, Participant


def compose_mentions(
    roster: Iterable[Participant],
    invoker_id: str | None,
    custom_message: str | None = None,
) -> MentionMessage:
    """
    Susun pesan tagall: satu token ``@user`` per peserta.

    Peserta yang dilewati adalah pengirim command (author pesan), bukan akun bot.
    """
    mention_text = ""
    mentions: list[str] = []

    for participant in roster:
        if participant.id == invoker_id:
            continue
        mention_text += f"@{participant.user} "
        mentions.append(participant.id)

    header = custom_message if custom_message else TAGALL_DEFAULT_HEADER
    return MentionMessage(text=f"{header}\n\n{mention_text}", mentions=tuple(mentions))
