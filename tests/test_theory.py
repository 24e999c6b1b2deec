from fretboard.theory import FLATS, SHARPS, display_name, frequency_to_pitch_class, note_pool, pitch_class, semitone_distance


def test_frequency_to_pitch_class_reference_pitches():
	assert frequency_to_pitch_class(440.0) == "A"
	assert frequency_to_pitch_class(466.16) == "A#"
	assert frequency_to_pitch_class(220.0) == "A"
	assert frequency_to_pitch_class(82.41) == "E"
	assert frequency_to_pitch_class(415.3) == "G#"


def test_frequency_out_of_range_is_no_detection():
	assert frequency_to_pitch_class(40) is None
	assert frequency_to_pitch_class(2000) is None
	assert frequency_to_pitch_class(50.0) is None
	assert frequency_to_pitch_class(1500.0) is None
	assert frequency_to_pitch_class(None) is None
	assert frequency_to_pitch_class(float("nan")) is None


def test_semitone_distance_is_circular():
	assert semitone_distance("A", "G#") == 1
	assert semitone_distance("B", "C") == 1
	assert semitone_distance("C", "F#") == 6
	assert semitone_distance("Db", "C#") == 0
	assert semitone_distance("E", "C") == 4


def test_note_pools():
	assert note_pool("sharp") == SHARPS
	assert note_pool("flat") == FLATS
	mixed = note_pool("mixed")
	assert len(mixed) == 17
	assert len(set(mixed)) == len(mixed)
	assert set(SHARPS) | set(FLATS) == set(mixed)


def test_pitch_class_and_display_spelling():
	assert pitch_class("Bb") == "A#"
	assert pitch_class("E") == "E"
	assert display_name("A#") == "A#/Bb"
	assert display_name("C") == "C"
