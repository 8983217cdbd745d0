"""
Generate a PT/OT Visit Note from the Command Line

Builds the pipeline from environment configuration (.env supported), runs a
single instruction through the generate / validate / repair loop and prints
the published note.

Usage:
    python generate_visit_note.py --text "Pt c/o neck pain; STM to UT and levator"
    python generate_visit_note.py --text "..." --label "Patient #7" --discipline OT
    python generate_visit_note.py --clean --text "• HEP reviewed\n• HEP reviewed"

Exit Codes:
    0 → note published (debug, if any, printed to stderr)
    1 → input, configuration, validation or oracle failure

Author: Shubham Singh
Date: January 2026
"""

import argparse
import json
import sys

from loguru import logger

from visit_note_generation.core.exceptions import (
    InputError,
    NoteValidationError,
    VisitNoteGenerationError,
)
from visit_note_generation.core.models import VisitRequest
from visit_note_generation.pipeline import VisitNotePipeline


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Generate a strictly formatted PT/OT visit note from a dictated instruction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # PT note for the default patient label
  python generate_visit_note.py --text "LBP, STM to lumbar paraspinals, TherAct STS"

  # OT note, rotation keyed on a specific patient
  python generate_visit_note.py --text "ADL training, UE coordination" --discipline OT --label "Patient #3"
        """,
    )

    parser.add_argument(
        "--text",
        type=str,
        required=True,
        help="Clinician instruction (dictated free text)",
    )

    parser.add_argument(
        "--label",
        type=str,
        default=None,
        help="Patient label; also keys phrase rotation (default: DEFAULT_PATIENT_LABEL)",
    )

    parser.add_argument(
        "--discipline",
        type=str,
        choices=["PT", "OT", "pt", "ot"],
        default="PT",
        help="Rehab discipline (default: PT)",
    )

    parser.add_argument(
        "--clean",
        action="store_true",
        help="Conservatively clean the text instead of generating a note",
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to .env file (default: auto-detect)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override LOG_LEVEL for this run",
    )

    return parser


def main(argv=None) -> int:
    args = create_argument_parser().parse_args(argv)

    # =========================================================================
    # STAGE 1: INITIALIZE PIPELINE
    # =========================================================================
    try:
        pipeline = VisitNotePipeline.from_environment(env_file=args.env_file)
    except VisitNoteGenerationError as e:
        print(f"[FAIL] Failed to initialize pipeline: {e}", file=sys.stderr)
        return 1

    logger.remove()
    logger.add(sys.stderr, level=(args.log_level or pipeline.config.log_level).upper())

    # =========================================================================
    # STAGE 2: CLEAN MODE
    # =========================================================================
    if args.clean:
        try:
            print(pipeline.clean_text(args.text))
        except VisitNoteGenerationError as e:
            print(f"[FAIL] Clean failed: {e}", file=sys.stderr)
            return 1
        return 0

    # =========================================================================
    # STAGE 3: GENERATE
    # =========================================================================
    try:
        request = VisitRequest.create(
            user_text=args.text,
            patient_label=args.label,
            discipline=args.discipline,
            default_label=pipeline.config.default_patient_label,
        )
        note = pipeline.generate_visit_note(request)
    except InputError as e:
        print(f"[FAIL] {e.message}", file=sys.stderr)
        return 1
    except NoteValidationError as e:
        print("[FAIL] " + json.dumps(e.to_detail(), indent=2), file=sys.stderr)
        return 1
    except VisitNoteGenerationError as e:
        print(f"[FAIL] Generate failed: {e}", file=sys.stderr)
        return 1

    print(note.summary)
    if note.has_debug:
        print("\n[DEBUG] " + json.dumps(note.debug, indent=2), file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
