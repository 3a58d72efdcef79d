"""CLI interface: inspect, migrate, fetch, play and render dictations."""

import argparse
import asyncio
import json
import logging
import os
import sys

from dictee import codec, legacy
from dictee.audio import render_dictation
from dictee.constants import DICTATION_REPEATS, RATE_MAX, RATE_MIN, RATE_NORMAL, RATE_PRESETS, VERSION
from dictee.errors import DictationError, InvalidAnswer
from dictee.fetcher import RemoteFetcher
from dictee.library import migrate
from dictee.models import DictationDocument
from dictee.session import PlaybackSession, RevealingCorrection, SessionNotice
from dictee.speech import SpeechCoordinator
from dictee.tts import EdgeTTSHost


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(1)


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _load_document(source: str) -> DictationDocument:
    """Build a document from a legacy locator, a URL, or a local file."""
    if legacy.is_legacy_locator(source):
        return legacy.decode(source)
    if _is_remote(source):
        fetcher = RemoteFetcher()
        try:
            return codec.parse(fetcher.fetch(source))
        finally:
            fetcher.close()
    if not os.path.exists(source):
        _fail(f"File not found: {source}")
    with open(source, encoding="utf-8") as f:
        return codec.parse(f.read())


def _write_or_print(text: str, output: str | None) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Written: {output}")
    else:
        print(text, end="")


def _parse_rate(value: str) -> float:
    if value.lower() in RATE_PRESETS:
        return RATE_PRESETS[value.lower()]
    try:
        rate = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"rate must be one of {', '.join(RATE_PRESETS)} or a number"
        )
    if not RATE_MIN <= rate <= RATE_MAX:
        raise argparse.ArgumentTypeError(f"rate must be between {RATE_MIN} and {RATE_MAX}")
    return rate


def cmd_show(args):
    """Print a summary of a dictation."""
    doc = _load_document(args.source)
    print(f"Title:    {doc.title}")
    print(f"Language: {doc.language}")
    print(f"Sentences ({len(doc.sentences)}):")
    for i, sentence in enumerate(doc.sentences, start=1):
        print(f"  {i:2d}. {sentence}")
    for field, message in doc.validation_errors().items():
        print(f"Warning: {field}: {message}", file=sys.stderr)


def cmd_migrate(args):
    """Convert a legacy locator into the plain-text format."""
    _write_or_print(migrate(args.url), args.output)


def cmd_fetch(args):
    """Download a shared document and normalize it."""
    fetcher = RemoteFetcher()
    try:
        text = fetcher.fetch(args.url)
    finally:
        fetcher.close()
    doc = codec.parse(text)
    if not doc.sentences:
        print("Warning: no sentences found in the fetched document", file=sys.stderr)
    _write_or_print(codec.serialize(doc), args.output)


async def _read_line(prompt: str) -> str | None:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


async def run_interactive(session: PlaybackSession, read_line=_read_line) -> None:
    """Drive a session from the terminal.

    Commands: ":r" replays the sentence, ":rate <preset|number>" changes
    the speed, ":q" quits. Anything else is an answer.
    """
    def show_correction(state):
        if isinstance(state, RevealingCorrection):
            print(f"  Correction: {state.correction}")

    session.on_state = show_correction
    await session.prepare()
    speech_on = session.speech.is_supported()
    total = len(session.document.sentences)

    while not session.is_finished:
        print(f"\nSentence {session.current_index + 1}/{total}")
        if speech_on:
            await session.speak_current()

        while True:
            line = await read_line("> ")
            if line is None or line.strip() == ":q":
                session.close()
                return
            command = line.strip()
            if command == ":r":
                if speech_on:
                    await session.speak_current()
                continue
            if command.startswith(":rate"):
                parts = command.split()
                if len(parts) != 2:
                    print("  usage: :rate normal|medium|slow|<number>")
                    continue
                try:
                    session.set_playback_rate(_parse_rate(parts[1]))
                    print(f"  Rate: {session.playback_rate}")
                except (ValueError, argparse.ArgumentTypeError) as e:
                    print(f"  {e}")
                continue
            try:
                result = await session.submit_answer(line)
            except InvalidAnswer:
                continue
            if result.is_correct:
                print("  Correct!")
            break

    score = session.score
    print(f"\nDictation finished: {session.percentage}% ({score.correct}/{score.total} correct)")


def _print_notice(notice: SessionNotice) -> None:
    print(f"  [!] {notice.message}", file=sys.stderr)


def cmd_play(args):
    """Play a dictation interactively in the terminal."""
    doc = _load_document(args.source)
    host = None if args.no_speech else EdgeTTSHost()
    session = PlaybackSession(doc, SpeechCoordinator(host), rate=args.rate, on_notice=_print_notice)
    print(f"Dictation: {doc.title}")
    try:
        asyncio.run(run_interactive(session))
    except KeyboardInterrupt:
        session.close()
        print()

    if args.transcript:
        with open(args.transcript, "w", encoding="utf-8") as f:
            json.dump(session.transcript().to_dict(), f, indent=2, ensure_ascii=False)
        print(f"Transcript written: {args.transcript}")


def cmd_render(args):
    """Render a dictation to an audio file."""
    doc = _load_document(args.source)
    print(f"Rendering {doc.title!r} ({len(doc.sentences)} sentences)...")
    fmt = os.path.splitext(args.output)[1].lstrip(".").lower() or "mp3"
    path = render_dictation(
        doc, args.output,
        voice=args.voice, rate=args.rate, repeats=args.repeats,
        announce_title=not args.no_title, format=fmt,
    )
    print(f"Done: {path}")


def cmd_voices(args):
    """List available voices."""
    voices = asyncio.run(EdgeTTSHost().load_voices())
    filter_str = args.filter.lower() if args.filter else None
    if filter_str:
        voices = [v for v in voices if filter_str in v.name.lower() or filter_str in v.lang.lower()]
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v.name} ({v.lang})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dictee",
        description="Author, migrate and play back dictation exercises",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser("show", help="Show a dictation (file, URL or legacy locator)")
    show_parser.add_argument("source", help="File path, URL or legacy locator")
    show_parser.set_defaults(func=cmd_show)

    migrate_parser = subparsers.add_parser("migrate", help="Convert a legacy locator to plain text")
    migrate_parser.add_argument("url", help="Legacy locator")
    migrate_parser.add_argument("-o", "--output", help="Write to this file instead of stdout")
    migrate_parser.set_defaults(func=cmd_migrate)

    fetch_parser = subparsers.add_parser("fetch", help="Download a shared dictation document")
    fetch_parser.add_argument("url", help="Share link (Drive, Dropbox, GitHub, CodiMD, Nextcloud...)")
    fetch_parser.add_argument("-o", "--output", help="Write to this file instead of stdout")
    fetch_parser.set_defaults(func=cmd_fetch)

    play_parser = subparsers.add_parser("play", help="Play a dictation in the terminal")
    play_parser.add_argument("source", help="File path, URL or legacy locator")
    play_parser.add_argument("--rate", type=_parse_rate, default=RATE_NORMAL, help="normal, medium, slow or a number")
    play_parser.add_argument("--no-speech", action="store_true", help="Do not use speech synthesis")
    play_parser.add_argument("--transcript", help="Write the scored transcript as JSON")
    play_parser.set_defaults(func=cmd_play)

    render_parser = subparsers.add_parser("render", help="Render a dictation to an audio file")
    render_parser.add_argument("source", help="File path, URL or legacy locator")
    render_parser.add_argument("output", help="Output audio file (.mp3 or .wav)")
    render_parser.add_argument("--voice", help="edge-tts voice name (default: best match for the language)")
    render_parser.add_argument("--rate", type=_parse_rate, default=RATE_NORMAL, help="normal, medium, slow or a number")
    render_parser.add_argument("--repeats", type=int, default=DICTATION_REPEATS, help="Readings per sentence")
    render_parser.add_argument("--no-title", action="store_true", help="Do not announce the title")
    render_parser.set_defaults(func=cmd_render)

    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    return parser


def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args)
    except DictationError as e:
        _fail(str(e))
