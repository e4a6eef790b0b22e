"""Keystroke-level typing state machine.

The engine is fed the *whole* text-box value after every keystroke and
classifies the change against the previous value. Only single-character
additions and deletions at the end of the value are accepted; anything else
(paste, multi-character replacement, edits in the middle) is rejected and the
previous value stays in place.

Progress counts a character only while it extends an uninterrupted correct
prefix of the current word. One wrong character poisons the remainder of the
word until the error is backspaced away, so typing junk and fixing it later
cannot inflate the score. Word separators count once the word is finalized
with a space; line ends carry no separator.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

_LINE_BREAK = re.compile(r'\r?\n')


class RaceText:
    """Immutable lines of space-separated words."""

    def __init__(self, text: str):
        self.raw = text or ''
        self.lines: Tuple[str, ...] = tuple(_LINE_BREAK.split(self.raw))
        self.words: Tuple[Tuple[str, ...], ...] = tuple(tuple(line.split(' ')) for line in self.lines)
        self.total_chars = sum(len(line) for line in self.lines)
        if self.total_chars == 0:
            raise ValueError('race text must contain at least one character')

    def __len__(self):
        return self.total_chars

    def line(self, index: int) -> str:
        return self.lines[index] if 0 <= index < len(self.lines) else ''

    def word(self, line_index: int, word_index: int) -> str:
        if not 0 <= line_index < len(self.words):
            return ''
        words = self.words[line_index]
        return words[word_index] if 0 <= word_index < len(words) else ''

    def is_last_word(self, line_index: int, word_index: int) -> bool:
        if not 0 <= line_index < len(self.words):
            return True
        return word_index >= len(self.words[line_index]) - 1


@dataclass
class TypingCursor:
    line_index: int = 0
    word_index: int = 0
    typed_in_word: str = ''
    correct_prefix_len: int = 0
    has_error_in_word: bool = False

    def reset_word(self) -> None:
        self.typed_in_word = ''
        self.correct_prefix_len = 0
        self.has_error_in_word = False

    def to_dict(self):
        return {
            'lineIndex': self.line_index,
            'wordIndex': self.word_index,
            'typedInWord': self.typed_in_word,
            'correctPrefixLen': self.correct_prefix_len,
            'hasErrorInWord': self.has_error_in_word,
        }


@dataclass(frozen=True)
class InputResult:
    accepted: bool
    value: str


class TypingEngine:
    def __init__(self, text: str,
                 on_progress: Optional[Callable[[float], None]] = None,
                 on_complete: Optional[Callable[[], None]] = None):
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.configure(text)

    def configure(self, text: str) -> None:
        """Load a new text and reset every counter."""
        self.text = RaceText(text)
        self.cursor = TypingCursor()
        self.value = ''
        self.typed_total = 0
        self.completed = False

    @property
    def progress(self) -> float:
        return min(1.0, self.typed_total / self.text.total_chars)

    def apply_input_value(self, new_value: str) -> InputResult:
        prev = self.value
        if self.completed or not isinstance(new_value, str):
            return self._reject()
        if len(new_value) == len(prev) + 1 and new_value.startswith(prev):
            return self._add(new_value[-1])
        if len(new_value) == len(prev) - 1 and prev.startswith(new_value):
            return self._delete()
        return self._reject()

    def _reject(self) -> InputResult:
        return InputResult(False, self.value)

    def _accept(self, value: str) -> InputResult:
        self.value = value
        return InputResult(True, value)

    def _delete(self) -> InputResult:
        cursor = self.cursor
        if not cursor.typed_in_word:
            # Finalized words are out of reach
            return self._reject()
        was_len = len(cursor.typed_in_word)
        cursor.typed_in_word = cursor.typed_in_word[:-1]
        result = self._accept(self.value[:-1])
        if was_len == cursor.correct_prefix_len:
            cursor.correct_prefix_len -= 1
            self._count(-1)
        elif len(cursor.typed_in_word) == cursor.correct_prefix_len:
            cursor.has_error_in_word = False
        return result

    def _add(self, ch: str) -> InputResult:
        if ch == ' ':
            return self._finalize_word()
        cursor = self.cursor
        target = self.text.word(cursor.line_index, cursor.word_index)
        pos = len(cursor.typed_in_word)
        cursor.typed_in_word += ch
        result = self._accept(self.value + ch)
        if pos < len(target) and ch == target[pos] and not cursor.has_error_in_word:
            cursor.correct_prefix_len = pos + 1
            self._count(1)
        else:
            cursor.has_error_in_word = True
        return result

    def _finalize_word(self) -> InputResult:
        cursor = self.cursor
        target = self.text.word(cursor.line_index, cursor.word_index)
        word_ok = (cursor.typed_in_word == target or not target) and not cursor.has_error_in_word
        if not word_ok:
            return self._reject()

        if not self.text.is_last_word(cursor.line_index, cursor.word_index):
            cursor.word_index += 1
            cursor.reset_word()
            result = self._accept(self.value + ' ')
            self._count(1)
            return result

        cursor.line_index += 1
        cursor.word_index = 0
        cursor.reset_word()
        result = self._accept('')
        if cursor.line_index >= len(self.text.lines):
            self.completed = True
            if self.on_complete:
                self.on_complete()
        return result

    def _count(self, delta: int) -> None:
        self.typed_total = max(0, min(self.text.total_chars, self.typed_total + delta))
        if self.on_progress:
            self.on_progress(self.progress)

    def visible_lines(self) -> List[str]:
        """The current line and the one after it."""
        index = self.cursor.line_index
        return [self.text.line(index), self.text.line(index + 1)]

    def word_feedback(self) -> List[Tuple[str, bool]]:
        """Per-character highlight for the word being typed: (char, typed correctly)."""
        target = self.text.word(self.cursor.line_index, self.cursor.word_index)
        typed = self.cursor.typed_in_word
        return [(c, i < len(typed) and typed[i] == c) for i, c in enumerate(target)]
