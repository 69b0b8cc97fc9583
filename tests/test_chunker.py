"""청커(chunker.py)의 단위 테스트입니다."""

from __future__ import annotations

import pytest

from ltc_report.chunker import MAX_CHUNK_SIZE, _split_units, chunk_text


# ---------------------------------------------------------------------------
# _split_units
# ---------------------------------------------------------------------------


class TestSplitUnits:
    """_split_units 함수의 테스트입니다."""

    def test_줄바꿈_연속과_뒤따르는_텍스트가_한_단위(self):
        assert _split_units("가\n\n나\n다") == ["가", "\n\n나", "\n다"]

    def test_공백_단위는_앞_단위에_병합(self):
        units = _split_units("가\n  \n나\n\n")
        assert "".join(units) == "가\n  \n나\n\n"
        assert all(u.strip() for u in units)

    def test_앞쪽_줄바꿈(self):
        assert _split_units("\n\n가") == ["\n\n가"]


# ---------------------------------------------------------------------------
# chunk_text
# ---------------------------------------------------------------------------


class TestChunkText:
    """chunk_text 함수의 테스트입니다."""

    def test_빈_입력은_빈_목록(self):
        assert chunk_text("") == []

    def test_짧은_텍스트는_청크_하나(self):
        text = "첫 문단입니다.\n\n둘째 문단입니다."
        assert chunk_text(text) == [text]

    def test_기본_최대_크기(self):
        assert MAX_CHUNK_SIZE == 15000

    @pytest.mark.parametrize(
        "text",
        [
            "a",
            "\n\n\n",
            "   ",
            "가나다\n라마바\n\n\n사아자\n",
            "\n앞줄바꿈\n\n" + "x" * 95 + "\n" + "y" * 30,
            ("문단 " * 20 + "\n\n") * 30,
            "z" * 1000,
        ],
    )
    def test_이어붙이면_원문_복원_및_크기_제한(self, text):
        """청크를 이어붙이면 원문이 되고 모든 청크가 최대 크기 이하인지 확인합니다."""
        chunks = chunk_text(text, max_size=100)

        assert "".join(chunks) == text
        assert all(0 < len(c) <= 100 for c in chunks)

    def test_문단_경계에서_분할(self):
        """다음 문단을 더하면 한도를 넘을 때 문단 경계에서 청크를 닫는지 확인합니다."""
        a = "a" * 60
        b = "b" * 60
        chunks = chunk_text(f"{a}\n{b}", max_size=100)

        assert chunks == [a, f"\n{b}"]

    def test_단일_긴_문단은_강제_분할(self):
        """최대 크기보다 긴 단일 문단이 고정 오프셋으로 나뉘는지 확인합니다."""
        text = "가" * 250
        chunks = chunk_text(text, max_size=100)

        assert [len(c) for c in chunks] == [100, 100, 50]
        assert "".join(chunks) == text

    def test_긴_문단_앞뒤의_짧은_문단_보존(self):
        short = "짧은 문단"
        long_para = "\n" + "L" * 230
        tail = "\n끝"
        chunks = chunk_text(short + long_para + tail, max_size=100)

        assert chunks[0] == short
        assert chunks[-1] == tail
        assert all(len(c) <= 100 for c in chunks)
        assert "".join(chunks) == short + long_para + tail

    def test_결정적_출력(self):
        text = ("반복되는 문단입니다.\n" * 50)
        assert chunk_text(text, max_size=64) == chunk_text(text, max_size=64)

    def test_잘못된_최대_크기(self):
        with pytest.raises(ValueError):
            chunk_text("abc", max_size=0)
