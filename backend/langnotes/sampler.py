"""Multiple-choice question building from a pool of notes.

Anchors (the notes being asked about) are unique within a batch. Each
question's distractors come from other pool items; a distractor may show up
again in a different question of the same batch.
"""
from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from .errors import InsufficientPool, InvalidInput


class RandomSource(Protocol):
	def randrange(self, stop: int) -> int: ...

	def shuffle(self, x: list) -> None: ...


@dataclass(frozen=True)
class PoolItem:
	item_id: str
	prompt: str
	answer: str


@dataclass(frozen=True)
class QuizQuestion:
	note_id: str
	note_name: str
	options: Tuple[str, ...]


_default_rng = random.Random()


def _draw_distinct(rng: RandomSource, n: int, k: int, taken: Set[int], accept=None) -> List[int]:
	# Reject-and-resample; callers guarantee enough acceptable offsets exist
	drawn: List[int] = []
	while len(drawn) < k:
		offset = rng.randrange(n)
		if offset in taken:
			continue
		if accept is not None and not accept(offset):
			continue
		taken.add(offset)
		drawn.append(offset)
	return drawn


def sample(
	pool: Sequence[PoolItem],
	question_count: int,
	options_per_question: int = 3,
	rng: Optional[RandomSource] = None,
) -> List[QuizQuestion]:
	if question_count < 1:
		raise InvalidInput("question count must be at least 1")
	if options_per_question < 2:
		raise InvalidInput("a question needs at least 2 options")
	n = len(pool)
	if n < options_per_question:
		raise InsufficientPool(f"at least {options_per_question} notes are needed, found {n}")
	if question_count > n:
		raise InsufficientPool(f"cannot ask {question_count} distinct questions from {n} notes")
	rng = rng or _default_rng

	# Options must read as different strings; only enforce that when the pool
	# has enough distinct answers to satisfy it, otherwise fall back to
	# distinct items.
	distinct_answers = len({item.answer for item in pool})
	dedupe_text = distinct_answers >= options_per_question

	anchors = _draw_distinct(rng, n, question_count, set())
	questions: List[QuizQuestion] = []
	for anchor in anchors:
		anchor_item = pool[anchor]
		chosen_texts = {anchor_item.answer}

		def accept(offset: int) -> bool:
			if not dedupe_text:
				return True
			text = pool[offset].answer
			if text in chosen_texts:
				return False
			chosen_texts.add(text)
			return True

		distractors = _draw_distinct(rng, n, options_per_question - 1, {anchor}, accept)
		options = [anchor_item.answer] + [pool[offset].answer for offset in distractors]
		rng.shuffle(options)
		questions.append(QuizQuestion(note_id=anchor_item.item_id, note_name=anchor_item.prompt, options=tuple(options)))
	return questions


def pool_from_rows(rows: Iterable) -> List[PoolItem]:
	return [PoolItem(item_id=row.id, prompt=row.name, answer=row.translation) for row in rows]
