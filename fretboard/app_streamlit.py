import logging
from typing import Any, Dict

import altair as alt
import pandas as pd
import streamlit as st

from fretboard.audio import TonePlayer
from fretboard.microphone import MicrophoneInput
from fretboard.models import SessionSnapshot
from fretboard.scheduler import LoopScheduler
from fretboard.session import SessionOrchestrator
from fretboard.speech import SpeechNarrator
from fretboard.storage import SettingsStore
from fretboard.theory import display_name


st.set_page_config(page_title="Fretboard", page_icon=None, layout="centered")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@st.cache_resource
def get_session() -> SessionOrchestrator:
	# One engine per server process; Streamlit reruns must not rebuild it
	return SessionOrchestrator(
		LoopScheduler(),
		tone_player=TonePlayer(),
		narrator=SpeechNarrator(),
		microphone=MicrophoneInput(),
		store=SettingsStore(),
	)


def get_state() -> Any:
	if "last_widgets" not in st.session_state:
		st.session_state.last_widgets = get_session().settings.model_dump()
	return st.session_state


def sidebar_controls(session: SessionOrchestrator, state: Any) -> None:
	s = session.settings
	st.sidebar.header("Settings")
	game_modes = ["single", "chords", "triads"]
	note_modes = ["mixed", "sharp", "flat"]
	values: Dict[str, Any] = {
		"game_mode": st.sidebar.radio("Game mode", game_modes, index=game_modes.index(s.game_mode), horizontal=True),
		"note_mode": st.sidebar.radio("Notes", note_modes, index=note_modes.index(s.note_mode), horizontal=True),
		"duration": st.sidebar.slider("Timer (s)", min_value=1, max_value=15, value=s.duration, step=1),
		"voice_enabled": st.sidebar.toggle("Voice", value=s.voice_enabled),
		"tick_enabled": st.sidebar.toggle("Tick", value=s.tick_enabled),
		"input_mode": st.sidebar.toggle("Audio input (microphone)", value=s.input_mode),
	}
	if values["game_mode"] == "single":
		values["string_mode"] = st.sidebar.toggle("String constraint", value=s.string_mode)
	# Only push what the user actually changed since the last run
	changes = {k: v for k, v in values.items() if v != state.last_widgets.get(k)}
	state.last_widgets.update(values)
	if changes:
		session.update_settings(**changes)


def format_elapsed(seconds: int) -> str:
	return f"{seconds // 60:02d}:{seconds % 60:02d}"


@st.fragment(run_every=0.1)
def live_panel() -> None:
	session = get_session()
	snap = session.snapshot()
	st.caption(f"SESSION: {format_elapsed(snap.elapsed_seconds)}")
	st.markdown(f"<h1 style='text-align:center;font-size:5rem'>{snap.display}</h1>", unsafe_allow_html=True)
	if snap.challenge is not None and snap.challenge.string:
		st.markdown(f"<p style='text-align:center'>on the <b>{snap.challenge.string}</b> string</p>", unsafe_allow_html=True)
	progress = snap.time_left / snap.total_time if snap.is_playing and snap.total_time else 0.0
	st.progress(min(1.0, max(0.0, progress)))
	if snap.settings.input_mode:
		det = snap.detection
		heard = det.display or "-"
		st.write(f"Heard: **{heard}**" + (" (stable)" if det.stable else ""))
	if snap.input_error:
		st.warning(snap.input_error)

	st.markdown("---")
	stats_panel(snap)


def stats_panel(snap: SessionSnapshot) -> None:
	summary = snap.summary
	record = snap.scoring
	if not record.reaction_times and not record.note_stats:
		return
	st.subheader(f"Audio input stats: {summary.correct} / {summary.attempts} correct")
	cols = st.columns(2)
	cols[0].metric("Average reaction", f"{summary.average_ms / 1000:.2f}s" if summary.average_ms else "-")
	cols[1].metric("Fastest", f"{summary.fastest_ms / 1000:.2f}s" if summary.fastest_ms else "-")
	cols[0].metric("Most failed", f"{summary.most_failed or '-'} ({summary.most_failed_count})")
	cols[1].metric("Slowest note", summary.slowest_note or "-")
	st.caption(f"Fastest note: {summary.fastest_note or '-'}")

	rows = []
	for note, st_n in record.note_stats.items():
		avg = (st_n.total_time_ms / st_n.correct / 1000) if st_n.correct else 0.0
		rows.append({"note": display_name(note), "correct": st_n.correct, "mistakes": st_n.mistakes, "avg_s": round(avg, 2)})
	st.dataframe(rows, hide_index=True)

	if summary.recent:
		df = pd.DataFrame({"attempt": range(1, len(summary.recent) + 1), "seconds": [t / 1000 for t in summary.recent]})
		df["fast"] = df["seconds"] < 1.0
		chart = alt.Chart(df).mark_bar().encode(
			x=alt.X("attempt:O", title=None),
			y=alt.Y("seconds:Q"),
			color=alt.Color("fast:N", scale=alt.Scale(domain=[True, False], range=["#22c55e", "#3b82f6"]), legend=None),
			tooltip=["attempt", "seconds"],
		).properties(height=150)
		st.altair_chart(chart, use_container_width=True)


def main() -> None:
	state = get_state()
	session = get_session()
	sidebar_controls(session, state)

	st.title("Fretboard")
	label = "Stop" if session.is_playing else "Start"
	if st.button(label, use_container_width=True):
		session.toggle()
		st.rerun()

	live_panel()


if __name__ == "__main__":
	main()
