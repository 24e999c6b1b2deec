import random

from fretboard.generator import ChallengeGenerator
from fretboard.models import Settings
from fretboard.theory import CANONICAL_NOTES, CHORD_QUALITIES, FLATS, NOTE_VALUES, SHARPS, STRINGS, TRIAD_QUALITIES, semitone_distance


def test_single_note_challenge_has_only_root():
	gen = ChallengeGenerator(random.Random(0))
	c = gen.next(None, Settings(note_mode="sharp"))
	assert c.root in SHARPS
	assert c.quality is None and c.inversion is None and c.string is None
	assert c.label == c.root


def test_adjacent_candidate_is_requeued_once():
	gen = ChallengeGenerator(random.Random(4))
	settings = Settings(note_mode="sharp")
	gen.next(None, settings)
	upcoming = gen.note_bag.remaining[-1]
	previous = CANONICAL_NOTES[(NOTE_VALUES[upcoming] + 1) % 12]
	c = gen.next(previous, settings)
	assert c.root != upcoming
	assert gen.note_bag.remaining[0] == upcoming


def test_distant_candidate_is_kept():
	gen = ChallengeGenerator(random.Random(5))
	settings = Settings(note_mode="sharp")
	gen.next(None, settings)
	upcoming = gen.note_bag.remaining[-1]
	previous = CANONICAL_NOTES[(NOTE_VALUES[upcoming] + 6) % 12]
	assert gen.next(previous, settings).root == upcoming


def test_distance_filter_skipped_for_chords():
	gen = ChallengeGenerator(random.Random(6))
	settings = Settings(note_mode="sharp", game_mode="chords")
	gen.next(None, settings)
	upcoming = gen.note_bag.remaining[-1]
	assert gen.next(upcoming, settings).root == upcoming


def test_chord_and_triad_challenges():
	gen = ChallengeGenerator(random.Random(7))
	chord = gen.next(None, Settings(note_mode="flat", game_mode="chords", string_mode=True))
	assert chord.root in FLATS
	assert chord.quality in CHORD_QUALITIES
	assert chord.inversion is None and chord.string is None
	assert chord.label == f"{chord.root} {chord.quality}"

	triad = gen.next(None, Settings(game_mode="triads"))
	assert triad.quality in TRIAD_QUALITIES
	assert triad.inversion in ("root", "first", "second")
	assert triad.label.split(" ")[-2] == triad.root
	assert triad.label.startswith(("Root Pos.", "1st Inv.", "2nd Inv."))


def test_string_constraint_never_repeats_string():
	gen = ChallengeGenerator(random.Random(8))
	settings = Settings(string_mode=True)
	strings = [gen.next(None, settings).string for _ in range(60)]
	assert all(s in STRINGS for s in strings)
	assert all(a != b for a, b in zip(strings, strings[1:]))
	assert sorted(strings[:6]) == sorted(STRINGS)


def test_flat_root_matches_by_sharp_pitch_class():
	gen = ChallengeGenerator(random.Random(9))
	settings = Settings(note_mode="flat")
	for _ in range(12):
		c = gen.next(None, settings)
		assert c.pitch_class in CANONICAL_NOTES
		assert NOTE_VALUES[c.pitch_class] == NOTE_VALUES[c.root]


def test_last_item_of_cycle_is_accepted_even_if_adjacent():
	gen = ChallengeGenerator(random.Random(10))
	settings = Settings(note_mode="sharp")
	for _ in range(len(SHARPS) - 1):
		gen.next(None, settings)
	assert len(gen.note_bag) == 1
	last = gen.note_bag.remaining[0]
	previous = CANONICAL_NOTES[(NOTE_VALUES[last] + 1) % 12]
	c = gen.next(previous, settings)
	assert c.root == last
	assert semitone_distance(previous, c.root) == 1


def test_close_consecutive_roots_only_on_known_paths():
	gen = ChallengeGenerator(random.Random(11))
	settings = Settings(note_mode="sharp")
	requeued = []
	real_requeue = gen.note_bag.requeue

	def requeue(item):
		requeued.append(item)
		real_requeue(item)

	gen.note_bag.requeue = requeue
	previous = gen.next(None, settings).root
	close_pairs = 0
	for _ in range(200):
		size_before = len(gen.note_bag)
		requeued.clear()
		root = gen.next(previous, settings).root
		assert len(requeued) <= 1
		if semitone_distance(previous, root) <= 1:
			close_pairs += 1
			# either the bag's last item, or the second draw after one requeue
			assert size_before == 1 or len(requeued) == 1
		previous = root
	assert close_pairs < 200 // 4
