"""모델 입력 한도를 넘는 텍스트를 문단 경계 기준으로 나누는 청커."""

from __future__ import annotations

import re

MAX_CHUNK_SIZE = 15000
"""Gemini 계열 모델 입력에 맞춘 보수적인 청크 크기(문자 수)입니다."""

_NEWLINE_RUN = re.compile(r"(\n+)")


def _split_units(text: str) -> list[str]:
    """텍스트를 "줄바꿈 연속 + 뒤따르는 텍스트" 단위로 나눕니다.

    공백만 있는 단위는 앞 단위에 붙이므로 단위를 이어붙이면 원문이 됩니다.
    """
    parts = _NEWLINE_RUN.split(text)
    raw_units = [parts[0]] + [
        parts[i] + parts[i + 1] for i in range(1, len(parts) - 1, 2)
    ]

    units: list[str] = []
    for unit in raw_units:
        if not unit:
            continue
        if units and not unit.strip():
            units[-1] += unit
        else:
            units.append(unit)
    return units


def _hard_split(chunk: str, max_size: int) -> list[str]:
    return [chunk[i : i + max_size] for i in range(0, len(chunk), max_size)]


def chunk_text(text: str, max_size: int = MAX_CHUNK_SIZE) -> list[str]:
    """*text*를 *max_size* 이하의 청크 목록으로 나눕니다.

    문단 단위를 탐욕적으로 모으고, 다음 단위를 더하면 한도를 넘을 때 청크를 닫습니다.
    단일 문단이 한도보다 길면 고정 오프셋으로 강제 분할합니다.
    청크를 순서대로 이어붙이면 항상 원문과 같습니다.

    매개변수
    ----------
    text:
        나눌 텍스트입니다. 빈 문자열이면 빈 목록을 반환합니다.
    max_size:
        청크당 최대 문자 수입니다.

    예외
    ------
    ValueError
        *max_size*가 1보다 작으면 발생합니다.
    """
    if max_size < 1:
        raise ValueError(f"max_size({max_size})는 1 이상이어야 합니다")
    if not text:
        return []

    chunks: list[str] = []
    current = ""
    for unit in _split_units(text):
        if len(current) + len(unit) > max_size:
            if current:
                chunks.append(current)
            current = unit
        else:
            current += unit
    if current:
        chunks.append(current)

    final: list[str] = []
    for chunk in chunks:
        if len(chunk) > max_size:
            final.extend(_hard_split(chunk, max_size))
        else:
            final.append(chunk)
    return final
