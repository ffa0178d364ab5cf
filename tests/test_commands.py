from stickerbot.core.models import CreateSticker, Help, RenameSticker, TagAll
from stickerbot.services.commands import recognize


class TestCreateSticker:
    def test_default_name_when_no_argument(self) -> None:
        assert recognize(".s", True, "image") == CreateSticker(name="Bot WhatsApp")

    def test_single_word_name(self) -> None:
        assert recognize(".s Lucu", True, "image") == CreateSticker(name="Lucu")

    def test_whole_trailing_text_is_the_name(self) -> None:
        assert recognize(".s Keren Banget", True, "image") == CreateSticker(name="Keren Banget")

    def test_keyword_case_insensitive_argument_keeps_case(self) -> None:
        assert recognize(".S MiXeD", True, "image") == CreateSticker(name="MiXeD")

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        assert recognize("  .s   Lucu  ", True, "image") == CreateSticker(name="Lucu")

    def test_requires_image_media(self) -> None:
        assert recognize(".s", False, "none") is None
        assert recognize(".s", True, "sticker") is None
        assert recognize(".s", True, "other") is None


class TestRenameSticker:
    def test_name_argument(self) -> None:
        assert recognize(".wm Baru", False, "none", True) == RenameSticker(name="Baru")

    def test_empty_name_still_recognized(self) -> None:
        assert recognize(".wm", False, "none", True) == RenameSticker(name="")
        assert recognize(".wm   ", False, "none", False) == RenameSticker(name="")

    def test_keyword_case_insensitive(self) -> None:
        assert recognize(".WM Nama Baru", False, "none") == RenameSticker(name="Nama Baru")

    def test_with_image_attached(self) -> None:
        assert recognize(".wm Baru", True, "image") == RenameSticker(name="Baru")


class TestTagAll:
    def test_without_message(self) -> None:
        assert recognize(".tagall", False, "none") == TagAll(custom_message=None)

    def test_with_custom_message(self) -> None:
        assert recognize(".tagall Rapat jam 7!", False, "none") == TagAll(
            custom_message="Rapat jam 7!"
        )

    def test_keyword_case_insensitive(self) -> None:
        assert recognize(".TagAll halo", False, "none") == TagAll(custom_message="halo")


class TestHelp:
    def test_all_aliases(self) -> None:
        for alias in (".help", "!sticker", "!stiker"):
            assert recognize(alias, False, "none") == Help()

    def test_alias_must_match_exactly(self) -> None:
        assert recognize(".help me", False, "none") is None
        assert recognize("!stickers", False, "none") is None


def test_unrecognized_text_returns_none() -> None:
    for text in ("", "halo", "s", "wm Baru", "tagall", "!help", ". s"):
        assert recognize(text, False, "none") is None


def test_sticker_prefix_wins_over_other_commands_when_image_attached() -> None:
    # ".stiker" diawali ".s", jadi dengan gambar dianggap pembuatan sticker
    assert recognize("!stiker", True, "image") == Help()
    assert recognize(".stiker", True, "image") == CreateSticker(name="tiker")
