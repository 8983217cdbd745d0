"""
Constants for Visit Note Generation

This module defines the fixed phrase pools, allow-lists, ban-lists and topic
keyword lists used throughout the visit note generation pipeline. Constants
are centralized so the prompt builder and the validators read the exact same
strings.

Constant Categories:
    ROTATION POOLS        → Intro prefixes, closing sentences, POC openers
    SUBJECTIVE RULES      → Allowed starters, banned phrases
    SUMMARY RULES         → Banned generic openers, system instructions
    TOPIC KEYWORDS        → Phrase lists per anatomical / modality topic

Author: Shubham Singh
Date: January 2026
"""

from typing import Dict, Tuple


# =============================================================================
# STAGE 1: ROTATION POOLS
# =============================================================================
# Interchangeable phrase variants. The rotation selector walks each pool per
# patient so successive notes for the same patient vary but stay stable.

# -----------------------------------------------------------------------------
# 1.1 Summary intro prefixes (shared by PT and OT)
# -----------------------------------------------------------------------------
SUMMARY_INTRO_PREFIXES: Tuple[str, ...] = (
    "Today, pt ",
    "Overall, pt ",
    "Pt demonstrates ",
    "Pt displays ",
    "Pt shows ",
    "Pt completes",
    "Therapy tx focuses on",
    "During today's tx, pt ",
    "Pt continues ",
    "Pt presents ",
    "Assessment displays",
    "Tx focused on ",
    "Functional mobility indicates pt ",
)

# -----------------------------------------------------------------------------
# 1.2 Summary closing sentences
# -----------------------------------------------------------------------------
PT_SUMMARY_CLOSERS: Tuple[str, ...] = (
    "Continued skilled PT remains indicated to progress POC and support functional carryover to ADLs.",
    "Continued skilled PT remains indicated to address impairments and promote safe mobility to meet goals.",
    "Continued skilled PT remains indicated to improve strength, ROM, and functional tolerance for PLOF.",
    "Continued skilled PT remains indicated to reduce fall/injury risk and improve safe functional independence.",
    "Continued skilled PT remains indicated to advance therapeutic progression and optimize functional outcomes.",
)

OT_SUMMARY_CLOSERS: Tuple[str, ...] = (
    "Continued skilled OT remains indicated to progress POC and support functional carryover to ADLs.",
    "Continued skilled OT remains indicated to address impairments and promote safe performance of ADLs/IADLs to meet goals.",
    "Continued skilled OT remains indicated to improve UE function, coordination, and task tolerance for ADLs and PLOF.",
    "Continued skilled OT remains indicated to reduce fall/injury risk and improve safe functional independence.",
    "Continued skilled OT remains indicated to advance therapeutic progression and optimize functional outcomes.",
)

# -----------------------------------------------------------------------------
# 1.3 POC openers
# -----------------------------------------------------------------------------
PT_POC_OPENERS: Tuple[str, ...] = (
    "Continue to focus on",
    "Plan to progress",
    "Continue skilled PT emphasizing",
    "Continue with a focus on",
    "Proceed with ongoing skilled PT targeting",
    "Maintain POC with emphasis on",
    "Continue intervention focus on",
    "Advance POC with continued emphasis on",
)

OT_POC_OPENERS: Tuple[str, ...] = (
    "Continue to focus on",
    "Plan to progress",
    "Continue skilled OT emphasizing",
    "Continue with a focus on",
    "Proceed with ongoing skilled OT targeting",
    "Maintain POC with emphasis on",
    "Continue intervention focus on",
    "Advance POC with continued emphasis on",
)


# =============================================================================
# STAGE 2: SUBJECTIVE RULES
# =============================================================================

SUBJECTIVE_STARTERS: Tuple[str, ...] = (
    "Pt reports",
    "Pt states",
    "Pt notes",
    "Pt c/o",
    "Pt c/c of",
    "Pt verbalizes",
    "Pt expresses",
    "Pt denies",
    "Pt agrees",
    "Pt confirms",
)

# Matches "tolerates tx well" and "tolerate tx well"
TOLERATES_TX_WELL_PATTERN = r"tolerates?\s+tx\s+well"


# =============================================================================
# STAGE 3: SUMMARY RULES
# =============================================================================

# Lowercase prefixes; compared against the lowercased Summary
BANNED_SUMMARY_OPENERS: Tuple[str, ...] = (
    "pt demonstrates good engagement",
    "pt tolerated treatment well",
    "rom showed slight improvement",
    "pain levels remained manageable",
)

THIRD_PERSON_PATTERN = r"\b(the patient|they|their|them|theirs|themselves)\b"
ARROW_PATTERN = r"[↑↓]"
BULLET_PATTERN = r"^\s*[-*•]\s+"
NUMBERING_PATTERN = r"^\s*\d+\.\s+"

SUMMARY_MIN_SENTENCES = 5
SUMMARY_MAX_SENTENCES = 7

# Literal patella mobilization token form required by the content rules
GPM_PATTERN = r"GPM\s*III-?IV"


# =============================================================================
# STAGE 4: ORACLE SYSTEM INSTRUCTIONS
# =============================================================================

DRAFT_SYSTEM_INSTRUCTION = (
    "Follow formatting rules exactly. Do not add facts. Output only the note."
)
FORMAT_REPAIR_SYSTEM_INSTRUCTION = (
    "Fix formatting strictly. Do not add facts. Output only the corrected note."
)
CONTENT_REPAIR_SYSTEM_INSTRUCTION = (
    "Fix content while keeping EXACT format. Do not add facts beyond the user "
    "instruction. Output only the corrected note."
)
CLEAN_SYSTEM_INSTRUCTION = "You rewrite text conservatively without adding facts."


# =============================================================================
# STAGE 5: TOPIC KEYWORDS
# =============================================================================
# Case-insensitive substring lists. Several entries carry surrounding spaces
# or punctuation on purpose (" mt ", "mt,") to avoid matching inside words.

TOPIC_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    # -------------------------------------------------------------------------
    # 5.1 Anatomical regions
    # -------------------------------------------------------------------------
    "neck": (
        "neck pain",
        "cervical",
        "c-spine",
        "c spine",
        "suboccip",
        "upper trap",
        "levator",
    ),
    "low_back": (
        "lbp",
        "low back",
        "lowback",
        "lumbar",
        "l-spine",
        "l spine",
        "radicul",
        "sciatica",
        "paraspinal",
        "ql",
    ),
    "shoulder": (
        "shoulder pain",
        "rotator cuff",
        "rtc",
        "impingement",
        "gh",
        "glenohumeral",
    ),
    "knee": (
        "knee pain",
        "knee oa",
        "tka",
        "patella",
        "patellar",
    ),
    # -------------------------------------------------------------------------
    # 5.2 Treatment modalities
    # -------------------------------------------------------------------------
    "mentions_manual_therapy": (
        " mt ",
        "mt,",
        "mt.",
        "manual therapy",
        "manual tx",
        "stm",
        "soft tissue",
        "iastm",
    ),
    "mentions_therapeutic_activity": (
        "theract",
        "ther-act",
        "ther act",
        "functional training",
        "functional task",
        "sit-to-stand",
        "sit to stand",
        "sts",
        "transfer",
        "transfers",
        "lifting",
        "carry",
    ),
    "mentions_core": (
        "core",
        "abdominal",
        "abd",
        "trunk stability",
        "stabilizer",
        "stabilizers",
    ),
    # -------------------------------------------------------------------------
    # 5.3 Findings
    # -------------------------------------------------------------------------
    "patella_hypomobile": (
        "patella hypomobile",
        "patellar hypomobile",
        "hypomobile patella",
        "patellar mobility limited",
    ),
    "poor_posture": (
        "poor posture",
        "forward head",
        "forward head lean",
        "rounded shoulders",
        "kyphosis",
        "scapular protraction",
    ),
    "gait_impairment": (
        "abnormal gait",
        "impaired gait",
        "trendelenburg",
        "antalgic",
        "shuffling",
        "decreased stride",
        "decreased step",
        "gait deviation",
    ),
}


# =============================================================================
# STAGE 6: REQUEST DEFAULTS
# =============================================================================

DEFAULT_PATIENT_LABEL = "Patient #1"

# Glyphs the conservative cleaner rewrites to "-"
BULLET_GLYPHS = "•●◦▪️"
