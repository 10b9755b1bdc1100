#!/usr/bin/env python3
"""
Main entry point for the Crisp interview engine.
Allows running the package with: python -m crisp
"""
import sys
import asyncio
import getpass
import threading
from datetime import datetime
from typing import Optional, List

from .config import get_config, Config
from .errors import ConfigError, AuthError, DocumentError, InterviewError
from .infrastructure.data import StateStore, ProfileStore
from .infrastructure.identity import LocalIdentityStore
from .infrastructure.llm import GeminiRestClient
from .interview.aggregator import search_profiles, sort_profiles, score_band, SORT_FIELDS
from .interview.controller import InterviewController
from .interview.events import InterviewEventBus
from .interview.extraction import parse_resume
from .interview.gateway import InterviewGateway
from .interview.models import UserRole, InterviewSession, CandidateProfile, TimerState
from .utils import setup_logging

FAST_TICK_SECONDS = 0.1
USAGE = """Usage: python -m crisp [--resume PATH] [--interviewer] [--search TEXT] [--sort FIELD] [--fast]

  --resume PATH    PDF or DOCX résumé to interview on
  --interviewer    Show the candidate dashboard instead of running an interview
  --search TEXT    Dashboard: only candidates whose name or email contains TEXT
  --sort FIELD     Dashboard: sort by name, total_sessions, average_score or last_interview_date
  --fast           Run the countdown ten times faster (demos)
"""


def _arg_value(name: str) -> Optional[str]:
    """Value of --name=VALUE or --name VALUE."""
    for i, arg in enumerate(sys.argv):
        if arg.startswith(f"{name}="):
            return arg.split("=", 1)[1]
        if arg == name and i + 1 < len(sys.argv):
            return sys.argv[i + 1]
    return None


def _format_date(timestamp_ms: Optional[int]) -> str:
    if not timestamp_ms:
        return "-"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


# =============================================================================
# INTERVIEWER DASHBOARD
# =============================================================================

def _print_session(index: int, session: InterviewSession) -> None:
    status = f"{session.total_score}/100" if session.is_completed else "in progress"
    print(f"    #{index} {_format_date(session.last_activity)}  {status}")
    if session.summary:
        print(f"       {session.summary}")
    for question in session.questions:
        answer = session.find_answer(question.id)
        score = f"{answer.score}/10" if answer and answer.score is not None else "-"
        print(f"       [{question.difficulty.value:<6}] {score:>5}  {question.text}")


def show_dashboard(config: Config, search: Optional[str], sort_field: str) -> None:
    state = StateStore(config.state_file).load()
    profiles: List[CandidateProfile] = state.candidates.profiles
    if search:
        profiles = search_profiles(profiles, search)
    profiles = sort_profiles(profiles, sort_field, descending=sort_field != "name")

    if not profiles:
        print("📭 No candidates found")
        return

    print(f"\n👥 {len(profiles)} candidate(s)")
    print("=" * 78)
    print(f"{'Name':<22} {'Email':<28} {'Sessions':>8} {'Average':>8}  Band")
    print("-" * 78)
    for profile in profiles:
        average = f"{profile.average_score:.1f}" if profile.average_score is not None else "-"
        print(f"{(profile.name or 'Unknown')[:22]:<22} {profile.email[:28]:<28} "
              f"{profile.total_sessions:>8} {average:>8}  {score_band(profile.average_score)}")

    print("=" * 78)
    for profile in profiles:
        print(f"\n📋 {profile.name or 'Unknown'} (last interview {_format_date(profile.last_interview_date)})")
        for i, session in enumerate(profile.sessions, start=1):
            _print_session(i, session)


# =============================================================================
# INTERVIEWEE FLOW
# =============================================================================

def _authenticate(controller: InterviewController) -> None:
    user = controller.check_auth_state()
    while user is None:
        choice = _ask("🔐 [s]ign in or create an [a]ccount? ").lower()
        email = _ask("   Email: ")
        password = getpass.getpass("   Password: ")
        try:
            if choice.startswith("a"):
                name = _ask("   Name (optional): ") or None
                user = controller.sign_up(email, password, name=name, role=UserRole.INTERVIEWEE)
            else:
                user = controller.sign_in(email, password)
        except AuthError as e:
            print(f"❌ {e}")
    print(f"✅ Signed in as {user.email} ({user.role.value})")


def _print_question(controller: InterviewController) -> None:
    session = controller.session
    question = controller.current_question
    print(f"\n❓ Question {session.current_question_index + 1}/{len(session.questions)} "
          f"[{question.difficulty.value} · {question.time_limit}s · {question.category}]")
    print(f"   {question.text}")
    print("   (type your answer; an empty line submits, /pause pauses, /quit leaves)")


def _print_results(session: InterviewSession) -> None:
    print("\n" + "=" * 50)
    print("🏁 INTERVIEW COMPLETE")
    print("=" * 50)
    for i, question in enumerate(session.questions, start=1):
        answer = session.find_answer(question.id)
        if answer is None:
            print(f"\nQ{i}: {question.text}\n   (no answer)")
            continue
        score = f"{answer.score}/10" if answer.score is not None else "not scored"
        print(f"\nQ{i}: {question.text}\n   Score: {score}")
        if answer.feedback:
            print(f"   {answer.feedback}")
    print(f"\n📊 Total score: {session.total_score}/100")
    print(f"📝 {session.summary}")
    print("💪 Strengths: " + "; ".join(session.strengths))
    print("🎯 To improve: " + "; ".join(session.weaknesses))


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
    def read_lines():
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line.rstrip("\n"))
        loop.call_soon_threadsafe(queue.put_nowait, None)

    threading.Thread(target=read_lines, daemon=True).start()


async def _answer_loop(controller: InterviewController, queue: asyncio.Queue) -> bool:
    """Feed typed lines into the controller. Returns False when the user left early."""
    lines: List[str] = []
    shown_index = -1

    while controller.session and not controller.session.is_completed:
        session = controller.session
        if session.current_question_index != shown_index and controller.current_question:
            shown_index = session.current_question_index
            lines = []
            _print_question(controller)

        try:
            line = await asyncio.wait_for(queue.get(), timeout=0.5)
        except asyncio.TimeoutError:
            continue

        if line is None or line == "/quit":
            print("💾 Progress saved. Run again to pick up where you left off.")
            return False
        if line == "/pause":
            controller.pause()
            print("⏸️  Paused. Press Enter to continue.")
            if await queue.get() is None:
                return False
            await controller.resume()
            continue
        if line == "":
            if not lines:
                print("   (type an answer before submitting)")
                continue
            print("📨 Submitted, evaluating in the background...")
            await controller.submit_answer()
            continue

        lines.append(line)
        controller.stage_answer("\n".join(lines))

    return True


async def run_interview(config: Config, resume_path: Optional[str], tick_seconds: float) -> None:
    def on_tick(timer: TimerState) -> None:
        if timer.time_remaining in (30, 10):
            print(f"   ⏳ {timer.time_remaining}s left")
        elif timer.time_remaining == 0:
            print("   ⏰ Time is up")

    event_bus = InterviewEventBus()
    gateway = InterviewGateway(GeminiRestClient.from_config(config), event_bus=event_bus,
                               question_count=config.questions_per_interview)
    controller = InterviewController(
        gateway,
        event_bus=event_bus,
        state_store=StateStore(config.state_file),
        identity_store=LocalIdentityStore(config.users_file),
        profile_store=ProfileStore(config.profiles_dir),
        tick_seconds=tick_seconds,
        on_tick=on_tick,
    )
    _authenticate(controller)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    resumed = False
    if controller.has_resumable_session():
        session = controller.session
        print(f"\n👋 Welcome back! You have an unfinished interview "
              f"({len(session.answers)}/{len(session.questions)} answered).")
        if _ask("   Resume it? [Y/n] ").lower() in ("", "y", "yes"):
            _start_stdin_reader(loop, queue)
            await controller.resume()
            resumed = True
        else:
            controller.reset()

    if not resumed:
        path = resume_path or _ask("📄 Path to your résumé (PDF or DOCX): ")
        try:
            document = parse_resume(path)
        except DocumentError as e:
            print(f"❌ {e}")
            return
        print(f"📇 {document.name or 'Unknown name'} · {document.email or 'no email'} · "
              f"{len(document.skills)} skills found")
        print("🤔 Generating your questions...")
        try:
            await controller.start_interview(document)
        except InterviewError as e:
            print(f"❌ {e}")
            return
        _start_stdin_reader(loop, queue)

    print(f"📝 Detailed logs: {config.log_file}")
    try:
        finished = await _answer_loop(controller, queue)
        if finished and controller.session and controller.session.is_completed:
            _print_results(controller.session)
    finally:
        await controller.shutdown()
        metrics = controller.metrics.get_metrics()
        if metrics["fallbacks_used"]:
            print(f"⚠️  AI service unavailable for {metrics['fallbacks_used']} call(s); "
                  "those results used local fallbacks.")


def main():
    """Command-line interface for the interview engine."""
    if "--help" in sys.argv or "-h" in sys.argv:
        print(USAGE)
        return

    interviewer = "--interviewer" in sys.argv

    # Load configuration from environment
    try:
        config = get_config(require_llm=not interviewer)
    except ConfigError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    setup_logging(config.log_file, config.log_level)

    if interviewer:
        sort_field = _arg_value("--sort") or "average_score"
        if sort_field not in SORT_FIELDS:
            print(f"❌ Invalid sort field. Use one of: {', '.join(SORT_FIELDS)}")
            sys.exit(1)
        show_dashboard(config, _arg_value("--search"), sort_field)
        return

    tick_seconds = FAST_TICK_SECONDS if "--fast" in sys.argv else config.timer_tick_seconds
    try:
        asyncio.run(run_interview(config, _arg_value("--resume"), tick_seconds))
    except KeyboardInterrupt:
        print("\n💾 Interrupted. Progress saved.")


if __name__ == "__main__":
    main()
