"""텍스트 파서(parsers/text.py)의 단위 테스트입니다."""

from ltc_report.parsers.text import TextParser, _detect_encoding


class TestDetectEncoding:
    """_detect_encoding 함수의 테스트입니다."""

    def test_utf8_콘텐츠(self):
        content = "한글 텍스트입니다.".encode("utf-8")
        assert _detect_encoding(content) == "utf-8-sig"

    def test_cp949_콘텐츠(self):
        content = "한글 텍스트입니다.".encode("cp949")
        assert _detect_encoding(content) == "cp949"

    def test_디코딩_불가시_latin1_폴백(self):
        assert _detect_encoding(b"\xff\xfe\xfd\x80\x81") == "latin-1"


class TestTextParser:
    """TextParser 클래스의 테스트입니다."""

    def test_can_parse_txt_True(self):
        assert TextParser().can_parse("file.TXT") is True

    def test_can_parse_pdf_False(self):
        assert TextParser().can_parse("file.pdf") is False

    def test_미디어_타입_허용(self):
        assert TextParser().accepts_media_type("text/plain; charset=utf-8") is True

    def test_원문_그대로_반환(self):
        """.txt 파일의 추출 결과가 디코딩된 원문과 정확히 같은지 확인합니다."""
        raw = "첫 줄\r\n\n  들여쓴 줄\t탭\n"
        assert TextParser().parse(raw.encode("utf-8"), "a.txt") == raw

    def test_cp949_원문_반환(self):
        raw = "수급자 기록지"
        assert TextParser().parse(raw.encode("cp949"), "legacy.txt") == raw

    def test_UTF8_BOM은_제거(self):
        assert TextParser().parse(b"\xef\xbb\xbf" + "안녕".encode("utf-8"), "bom.txt") == "안녕"

    def test_레지스트리_추출도_BOM_제거(self):
        from ltc_report.parsers import registry

        assert registry.extract(b"\xef\xbb\xbf" + "안녕".encode("utf-8"), "a.txt") == "안녕"
