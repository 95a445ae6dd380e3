#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
passmut — Password Mutation Engine

Expands a seed wordlist into a filtered, deduplicated stream of candidate
passwords for security-testing wordlists.

Features:
- Case, reversal, doubling and leet-speak (simple and full combinatorial) mutations
- Literal, numeric-range, year, punctuation and common-word affixes
- All-case permutations, word permutations and acronyms
- Custom ordered recipes and two-pass chained mutation
- Length, character-class, crunch-mask, blacklist and strength filters
- CRC-32 deduplication, alphabetical or efficacy-weighted sorting
- Passphrase generation (exhaustive or sampled)
- Multithreaded worker pool with a bounded work queue
"""
import argparse
import contextlib
import glob
import itertools
import logging
import math
import os
import queue
import random
import signal
import string
import sys
import zlib
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntFlag
from pathlib import Path
from threading import Lock
from typing import (Callable, Dict, FrozenSet, Iterable, Iterator, List,
                    Optional, Sequence, Set, TextIO, Tuple)

from tqdm import tqdm as _tqdm

__version__ = "0.1.0"

# =============================================
# PROGRESS BAR
# =============================================
def progress(it, **kw):
    # stdout carries the wordlist, so the bar only shows on an interactive stderr
    return _tqdm(it, **kw) if sys.stderr.isatty() else it

# =============================================
# RUN CONFIGURATION DEFAULTS
# =============================================
# Fallback CPU count when os.cpu_count() returns None (unknown system)
FALLBACK_CPU_COUNT = 4

# Default worker count (CPU count or environment variable)
DEFAULT_THREADS = int(os.environ.get('PASSMUT_THREADS', os.cpu_count() or FALLBACK_CPU_COUNT))

# Pending words the producer may queue ahead of the workers
QUEUE_CAPACITY = 100

# Largest full-leet / all-case / permutation expansion accepted per run item
DEFAULT_COMBINATION_BUDGET = int(os.environ.get('PASSMUT_COMBINATION_BUDGET', 1 << 20))

# Passphrase strategy switch: exhaustive below the limit, sampled above it
PASSPHRASE_EXHAUSTIVE_LIMIT = 10_000
PASSPHRASE_SAMPLE_COUNT = 1000

DEFAULT_YEARS_RANGE = "1980-current"
BUILT_IN_COMMON = "BUILT_IN"
SORT_MODES = ("", "a", "e")
MUTATION_LEVELS = (0, 1, 2)

# =============================================
# Logging
# =============================================
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(message)s",
    datefmt="%H:%M:%S"
)
log = logging.getLogger(__name__)

# Thread-safe logging lock for parallel operations
_log_lock = Lock()

def parallel_log(message: str, level: int = logging.INFO):
    """Thread-safe logging for parallel operations"""
    with _log_lock:
        log.log(level, message)

def sigint_handler(signum, frame):
    log.warning("\nInterrupted by user — exiting cleanly")
    sys.exit(0)

# =============================================
# ERRORS
# =============================================
class PassmutError(Exception):
    """Fatal error that aborts a run before any output is produced"""

class ConfigError(PassmutError):
    """Invalid run configuration"""

class InputError(PassmutError):
    """Missing or unreadable input (wordlists, blacklist, common words)"""

class MutationError(PassmutError):
    """Failure inside the mutation pipeline (empty pool, worker failure)"""

# =============================================
# TRANSFORMATION CATALOG: TABLES
# =============================================
# Ordered (letter, alternatives) pairs; the first alternative is the primary
# replacement. Source letters are disjoint and no primary replacement is a
# source letter, so applying every primary substitution is order-independent.
LEET_TABLE: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('s', ('$', 'z')),
    ('e', ('3',)),
    ('a', ('4', '@')),
    ('o', ('0',)),
    ('i', ('1', '!')),
    ('l', ('1', '!')),
    ('t', ('7',)),
    ('b', ('8',)),
    ('z', ('2',)),
)
LEET_MAP: Dict[str, Tuple[str, ...]] = dict(LEET_TABLE)

PUNCTUATION = "!@$%^&*()"

COMMON_WORDS = ["pw", "pwd", "admin", "sys"]

_ASCII_LOWER = frozenset(string.ascii_lowercase)
_ASCII_UPPER = frozenset(string.ascii_uppercase)
_ASCII_DIGITS = frozenset(string.digits)
_ASCII_ALNUM = _ASCII_LOWER | _ASCII_UPPER | _ASCII_DIGITS
_ASCII_SWAP = str.maketrans(
    string.ascii_lowercase + string.ascii_uppercase,
    string.ascii_uppercase + string.ascii_lowercase,
)

# =============================================
# TRANSFORMATION CATALOG: SIMPLE TRANSFORMS
# =============================================
def upper(word: str) -> str:
    return word.upper()

def lower(word: str) -> str:
    return word.lower()

def capitalize(word: str) -> str:
    """Upper-case the first character only; unlike str.capitalize the rest is untouched"""
    return word[:1].upper() + word[1:]

def swap_case(word: str) -> str:
    """Toggle the case of ASCII letters, leave everything else alone"""
    return word.translate(_ASCII_SWAP)

def reverse(word: str) -> str:
    return word[::-1]

def double(word: str) -> str:
    return word + word

def strip_whitespace(word: str) -> str:
    return "".join(word.split())

# =============================================
# TRANSFORMATION CATALOG: LEET SPEAK
# =============================================
def simple_leet(word: str) -> List[str]:
    """
    One variant per leet letter class (primary replacement everywhere),
    followed by the cumulative variant with every class substituted.
    Substitution is case-sensitive: only lowercase source letters are replaced.
    """
    variants = []
    cumulative = word
    for letter, alternatives in LEET_TABLE:
        primary = alternatives[0]
        variants.append(word.replace(letter, primary))
        cumulative = cumulative.replace(letter, primary)
    variants.append(cumulative)
    return variants

def leet_all(word: str) -> str:
    """Cumulative simple leet: every primary substitution applied at once"""
    for letter, alternatives in LEET_TABLE:
        word = word.replace(letter, alternatives[0])
    return word

def _leet_options(word: str) -> List[Tuple[str, ...]]:
    return [(c,) + LEET_MAP.get(c.lower(), ()) for c in word]

def count_full_leet(word: str) -> int:
    """Number of strings full_leet() yields: product of (alternatives + 1) per position"""
    return math.prod(len(options) for options in _leet_options(word))

def full_leet(word: str) -> Iterator[str]:
    """
    Every combination of leet alternatives over all substitutable positions.

    Lazily yields count_full_leet(word) strings, the unmodified word first.
    The count is exponential in the number of substitutable positions, so
    callers should check it against a budget before iterating.
    """
    for combo in itertools.product(*_leet_options(word)):
        yield "".join(combo)

# =============================================
# TRANSFORMATION CATALOG: CASE PERMUTATIONS
# =============================================
def count_all_cases(word: str) -> int:
    return 1 << len(word)

def all_cases(word: str) -> Iterator[str]:
    """
    All 2**n case masks of a word (bit j set = position j upper-cased).

    Positions without case produce the same output for either bit, so the
    number of distinct strings can be lower than the number yielded.
    Exponential in len(word): check count_all_cases() first.
    """
    lowers = [c.lower() for c in word]
    uppers = [c.upper() for c in word]
    n = len(word)
    for mask in range(1 << n):
        yield "".join(uppers[j] if (mask >> j) & 1 else lowers[j] for j in range(n))

# =============================================
# TRANSFORMATION CATALOG: AFFIXES
# =============================================
def split_affixes(value: str) -> List[str]:
    """Comma-separated literal affixes, each stripped of surrounding whitespace"""
    if not value:
        return []
    return [part.strip() for part in value.split(",")]

def number_range(spec: str, current_year: Optional[int] = None) -> List[str]:
    """
    Expand a "start-end" numeric range into affix strings.

    Either bound may be "current" (the current calendar year). Numbers are
    zero-padded to the width of the start token when it has a leading zero,
    or is wider than one character with a value below 10 ("00-99" → 00..99).
    Anything that is not exactly two integer parts yields nothing.
    """
    if not spec:
        return []
    parts = spec.split("-")
    if len(parts) != 2:
        return []
    if current_year is None:
        current_year = datetime.now().year

    def parse(token: str) -> int:
        token = token.strip()
        if token.lower() == "current":
            return current_year
        return int(token)

    try:
        start, end = parse(parts[0]), parse(parts[1])
    except ValueError:
        return []

    start_token = parts[0].strip()
    width = len(start_token)
    if start_token.startswith("0") or (width > 1 and start < 10):
        return [f"{n:0{width}d}" for n in range(start, end + 1)]
    return [str(n) for n in range(start, end + 1)]

def prefix_variants(word: str, prefixes: Iterable[str]) -> List[str]:
    return [p + word for p in prefixes]

def suffix_variants(word: str, suffixes: Iterable[str]) -> List[str]:
    return [word + s for s in suffixes]

def punctuation_variants(word: str) -> List[str]:
    return [word + p for p in PUNCTUATION]

def common_word_variants(word: str, common: Iterable[str]) -> List[str]:
    variants = []
    for c in common:
        variants.append(c + word)
        variants.append(word + c)
    return variants

# =============================================
# TRANSFORMATION CATALOG: WHOLE-LIST TRANSFORMS
# =============================================
def acronym(words: Iterable[str]) -> str:
    """First character of every input word, concatenated"""
    return "".join(w[0] for w in words if w)

def count_word_permutations(n: int) -> int:
    return sum(math.perm(n, k) for k in range(1, n + 1))

def word_permutations(words: Sequence[str], separator: str = "") -> Iterator[str]:
    """
    Every ordered arrangement of 1..n distinct words, joined by separator.
    Grows factorially with len(words); see count_word_permutations().
    """
    unique = list(dict.fromkeys(words))
    for k in range(1, len(unique) + 1):
        for combo in itertools.permutations(unique, k):
            yield separator.join(combo)

# =============================================
# CUSTOM RECIPES
# =============================================
class RecipeStep(Enum):
    REVERSE = "reverse"
    UPPER = "upper"
    LOWER = "lower"
    SWAP = "swap"
    CAPITALIZE = "capitalize"
    DOUBLE = "double"
    LEET = "leet"
    STRIP = "strip"
    UNKNOWN = "unknown"

RECIPE_ALIASES: Dict[str, RecipeStep] = {
    "-r": RecipeStep.REVERSE, "--reverse": RecipeStep.REVERSE, "reverse": RecipeStep.REVERSE,
    "-u": RecipeStep.UPPER, "--upper": RecipeStep.UPPER, "--uppercase": RecipeStep.UPPER,
    "upper": RecipeStep.UPPER, "uppercase": RecipeStep.UPPER,
    "-l": RecipeStep.LOWER, "--lower": RecipeStep.LOWER, "--lowercase": RecipeStep.LOWER,
    "lower": RecipeStep.LOWER, "lowercase": RecipeStep.LOWER,
    "-s": RecipeStep.SWAP, "--swap": RecipeStep.SWAP, "--swapcase": RecipeStep.SWAP,
    "swap": RecipeStep.SWAP, "swapcase": RecipeStep.SWAP,
    "-c": RecipeStep.CAPITALIZE, "--capital": RecipeStep.CAPITALIZE,
    "--capitalize": RecipeStep.CAPITALIZE, "capital": RecipeStep.CAPITALIZE,
    "capitalize": RecipeStep.CAPITALIZE,
    "-d": RecipeStep.DOUBLE, "--double": RecipeStep.DOUBLE, "double": RecipeStep.DOUBLE,
    "-t": RecipeStep.LEET, "--leet": RecipeStep.LEET, "leet": RecipeStep.LEET,
    "strip": RecipeStep.STRIP,
}

RECIPE_FUNCTIONS: Dict[RecipeStep, Callable[[str], str]] = {
    RecipeStep.REVERSE: reverse,
    RecipeStep.UPPER: upper,
    RecipeStep.LOWER: lower,
    RecipeStep.SWAP: swap_case,
    RecipeStep.CAPITALIZE: capitalize,
    RecipeStep.DOUBLE: double,
    RecipeStep.LEET: leet_all,
    RecipeStep.STRIP: strip_whitespace,
}

def parse_recipe(recipe: str) -> List[RecipeStep]:
    """
    Parse a comma-separated recipe ("-r,--upper,leet") into steps.
    Unrecognized names become RecipeStep.UNKNOWN and pass words through unchanged.
    """
    if not recipe:
        return []
    steps = []
    for token in recipe.split(","):
        name = token.strip().lower()
        step = RECIPE_ALIASES.get(name, RecipeStep.UNKNOWN)
        if step is RecipeStep.UNKNOWN:
            log.warning(f"Unknown recipe step '{token.strip()}' — passing words through unchanged")
        steps.append(step)
    return steps

def apply_recipe(word: str, steps: Iterable[RecipeStep]) -> str:
    for step in steps:
        func = RECIPE_FUNCTIONS.get(step)
        if func is not None:
            word = func(word)
    return word

# =============================================
# SCORING: STRENGTH
# =============================================
def strength(word: str) -> int:
    """
    Heuristic 0-4 complexity score.
    One point per character class present (lower, upper, digit, other);
    short words (< 8) are capped at 2 or lose a point, long words (>= 12) gain one.
    """
    if not word:
        return 0
    chars = set(word)
    score = 0
    if chars & _ASCII_LOWER:
        score += 1
    if chars & _ASCII_UPPER:
        score += 1
    if chars & _ASCII_DIGITS:
        score += 1
    if chars - _ASCII_ALNUM:
        score += 1

    if len(word) < 8:
        if score > 2:
            score = 2
        else:
            score -= 1
    if len(word) >= 12:
        score += 1
    return max(0, min(4, score))

# =============================================
# SCORING: EFFICACY
# =============================================
class Feature(IntFlag):
    ALL_UPPER = 1
    LEADING_CAPITAL = 2
    ALL_LOWER = 4
    HAS_LOWER = 8
    HAS_UPPER = 16
    ENDS_IN_DIGIT = 32
    ENDS_IN_SYMBOL = 64
    LEET = 128
    HAS_DIGIT = 256
    HAS_SYMBOL = 512
    ALL_DIGITS = 1024

# Share of real-world passwords by length (RockYou-derived)
LENGTH_WEIGHTS: Dict[int, float] = {
    1: 0.00034, 2: 0.0023, 3: 0.017, 4: 0.127, 5: 1.81, 6: 13.58, 7: 17.47, 8: 20.68,
    9: 15.27, 10: 14.04, 11: 6.03, 12: 3.86, 13: 2.53, 14: 1.73, 15: 1.12, 16: 0.82,
    17: 0.25, 18: 0.16, 19: 0.10, 20: 0.08, 21: 0.05, 22: 0.04, 23: 0.03, 24: 0.02,
}

# Share of real-world passwords by feature mask (RockYou-derived)
COMBO_WEIGHTS: Dict[int, float] = {
    16: 0.78, 4: 0.76, 20: 0.76, 256: 0.49, 272: 0.29, 260: 0.29, 276: 0.29,
    32: 0.28, 288: 0.28, 48: 0.27, 304: 0.27, 36: 0.27, 52: 0.27, 292: 0.27,
    1024: 0.19, 1280: 0.19, 8: 0.03, 1: 0.02, 9: 0.02, 128: 0.019,
}

FALLBACK_WEIGHT = 0.0001

def word_features(word: str) -> Feature:
    features = Feature(0)
    if not word:
        return features

    chars = set(word)
    has_lower = bool(chars & _ASCII_LOWER)
    has_upper = bool(chars & _ASCII_UPPER)
    has_digit = bool(chars & _ASCII_DIGITS)
    has_symbol = bool(chars - _ASCII_ALNUM)

    if has_lower and chars <= _ASCII_LOWER:
        features |= Feature.ALL_LOWER
    if has_upper and chars <= _ASCII_UPPER:
        features |= Feature.ALL_UPPER
    if has_lower:
        features |= Feature.HAS_LOWER
    if has_upper:
        features |= Feature.HAS_UPPER
    if has_digit:
        features |= Feature.HAS_DIGIT
    if has_symbol:
        features |= Feature.HAS_SYMBOL
    if chars <= _ASCII_DIGITS:
        features |= Feature.ALL_DIGITS
    if word[0] in _ASCII_UPPER and (len(word) == 1 or word[1] not in _ASCII_UPPER):
        features |= Feature.LEADING_CAPITAL

    last = word[-1]
    if last in _ASCII_DIGITS:
        features |= Feature.ENDS_IN_DIGIT
    elif last not in _ASCII_ALNUM:
        features |= Feature.ENDS_IN_SYMBOL

    # Coarse: any digit/symbol mixed with letters counts as leeted
    if (has_digit or has_symbol) and (has_lower or has_upper):
        features |= Feature.LEET
    return features

def efficacy(word: str) -> float:
    """Estimated real-world likelihood weight, used only for sort ordering"""
    length_weight = LENGTH_WEIGHTS.get(len(word), FALLBACK_WEIGHT)
    combo_weight = COMBO_WEIGHTS.get(int(word_features(word)), FALLBACK_WEIGHT)
    return length_weight * combo_weight

def sort_candidates(words: Iterable[str], mode: str) -> List[str]:
    """'a': ascending; 'e': descending efficacy, ties ascending; anything else: unchanged order"""
    if mode == "a":
        return sorted(words)
    if mode == "e":
        return sorted(words, key=lambda w: (-efficacy(w), w))
    return list(words)

# =============================================
# FILTERS
# =============================================
def matches_crunch(word: str, mask: str) -> bool:
    """
    Crunch-style positional mask: . any, # digit, ^ upper, % lower,
    & neither letter nor digit; any other mask character must match literally.
    """
    if len(word) != len(mask):
        return False
    for c, m in zip(word, mask):
        if m == '.':
            continue
        if m == '#':
            if c not in _ASCII_DIGITS:
                return False
        elif m == '^':
            if c not in _ASCII_UPPER:
                return False
        elif m == '%':
            if c not in _ASCII_LOWER:
                return False
        elif m == '&':
            if c in _ASCII_ALNUM:
                return False
        elif c != m:
            return False
    return True

# =============================================
# CONFIGURATION
# =============================================
@dataclass(frozen=True)
class MutationConfig:
    """Fully resolved, read-only parameters for one run"""
    # Length filters (0 = unbounded)
    min_length: int = 0
    max_length: int = 0

    # Word list expansion
    perms: bool = False
    space: bool = False
    acronym: bool = False

    # Catalog transforms
    double: bool = False
    reverse: bool = False
    leet: bool = False
    full_leet: bool = False
    all_cases: bool = False
    capital: bool = False
    upper: bool = False
    lower: bool = False
    swap: bool = False
    punctuation: bool = False

    # Affixes
    prefix_strings: str = ""
    suffix_strings: str = ""
    years_range: str = ""
    prefix_range: str = ""
    suffix_range: str = ""
    common_words: Tuple[str, ...] = ()

    # Output filters
    crunch_mask: str = ""
    min_strength: int = 0
    no_numbers: bool = False
    no_symbols: bool = False
    no_capitals: bool = False
    blacklist: FrozenSet[str] = frozenset()

    # Pipeline
    sort_mode: str = ""
    mutation_level: int = 0
    custom_recipe: str = ""
    passphrase_count: int = 0
    passphrase_separator: str = "-"
    thread_count: int = DEFAULT_THREADS
    combination_budget: int = DEFAULT_COMBINATION_BUDGET
    seed: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "common_words", tuple(self.common_words))
        object.__setattr__(self, "blacklist", frozenset(self.blacklist))

        if self.sort_mode not in SORT_MODES:
            raise ConfigError(f"sort mode must be 'a' or 'e', got '{self.sort_mode}'")
        if self.mutation_level not in MUTATION_LEVELS:
            raise ConfigError(f"mutation level must be 0, 1 or 2, got {self.mutation_level}")
        if not 0 <= self.min_strength <= 4:
            raise ConfigError(f"minimum strength must be between 0 and 4, got {self.min_strength}")
        if self.min_length < 0 or self.max_length < 0:
            raise ConfigError("length bounds cannot be negative")
        if self.passphrase_count < 0:
            raise ConfigError("passphrase word count cannot be negative")
        if self.combination_budget < 1:
            raise ConfigError("combination budget must be at least 1")

    @property
    def has_exclusions(self) -> bool:
        return self.no_numbers or self.no_symbols or self.no_capitals

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "MutationConfig":
        """Resolve parsed CLI arguments, loading common-word and blacklist files"""
        common: List[str] = []
        if args.common:
            if args.common == BUILT_IN_COMMON:
                common = list(COMMON_WORDS)
            else:
                common = load_word_file(args.common, "common words")
                log.info(f"Loaded {len(common):,} common words from {args.common}")

        blacklist: Set[str] = set()
        if args.exclude_common:
            blacklist = set(load_word_file(args.exclude_common, "blacklist"))
            log.info(f"Loaded {len(blacklist):,} blacklisted words from {args.exclude_common}")

        return cls(
            min_length=args.min,
            max_length=args.max,
            perms=args.perms,
            space=args.space,
            acronym=args.acronym,
            double=args.double,
            reverse=args.reverse,
            leet=args.leet,
            full_leet=args.full_leet,
            all_cases=args.all_cases,
            capital=args.capital,
            upper=args.upper,
            lower=args.lower,
            swap=args.swap,
            punctuation=args.punctuation,
            prefix_strings=args.prefix_strings or "",
            suffix_strings=args.suffix_strings or "",
            years_range=args.years or "",
            prefix_range=args.prefix_range or "",
            suffix_range=args.suffix_range or "",
            common_words=tuple(common),
            crunch_mask=args.crunch or "",
            min_strength=args.min_strength,
            no_numbers=args.no_numbers,
            no_symbols=args.no_symbols,
            no_capitals=args.no_capitals,
            blacklist=frozenset(blacklist),
            sort_mode=args.sort or "",
            mutation_level=args.level,
            custom_recipe=args.rules or "",
            passphrase_count=args.passphrase,
            passphrase_separator=args.sep,
            thread_count=args.threads,
            combination_budget=args.combination_budget,
            seed=args.seed,
        )

# =============================================
# RESULT SINK
# =============================================
class ResultSink:
    """
    Filters, deduplicates and commits final candidates.

    Filters run lock-free; the dedup table, collected results and output
    stream are guarded by a single lock. With a sort mode configured,
    accepted words are buffered until flush(); otherwise they are written
    immediately, one per line.
    """

    def __init__(self, config: MutationConfig, output: Optional[TextIO] = None):
        self.config = config
        self.output = output
        self._seen: Set[int] = set()
        self._collected: List[str] = []
        self._lock = Lock()
        self.accepted = 0
        self.duplicates = 0
        self.rejected = 0

    def accepts(self, word: str) -> bool:
        """Apply the output filters in order, stopping at the first failure"""
        cfg = self.config
        if cfg.min_length > 0 and len(word) < cfg.min_length:
            return False
        if cfg.max_length > 0 and len(word) > cfg.max_length:
            return False

        if cfg.has_exclusions:
            for c in word:
                if cfg.no_numbers and c in _ASCII_DIGITS:
                    return False
                if cfg.no_capitals and c in _ASCII_UPPER:
                    return False
                if cfg.no_symbols and c not in _ASCII_ALNUM:
                    return False

        if cfg.crunch_mask and not matches_crunch(word, cfg.crunch_mask):
            return False
        if cfg.blacklist and word in cfg.blacklist:
            return False
        if cfg.min_strength > 0 and strength(word) < cfg.min_strength:
            return False
        return True

    def submit(self, word: str) -> bool:
        """Returns True when the word was accepted as new output"""
        if not self.accepts(word):
            with self._lock:
                self.rejected += 1
            return False

        # Distinct words sharing a CRC-32 collapse into one; accepted risk
        checksum = zlib.crc32(word.encode("utf-8"))
        with self._lock:
            if checksum in self._seen:
                self.duplicates += 1
                return False
            self._seen.add(checksum)
            self.accepted += 1
            if self.config.sort_mode:
                self._collected.append(word)
            elif self.output is not None:
                self.output.write(word + "\n")
        return True

    def drain_sorted(self) -> List[str]:
        """Return (and release) the buffered results in configured sort order"""
        with self._lock:
            collected, self._collected = self._collected, []
        return sort_candidates(collected, self.config.sort_mode)

    def flush(self):
        if not self.config.sort_mode:
            return
        results = self.drain_sorted()
        log.info(f"Writing {len(results):,} sorted candidates (mode '{self.config.sort_mode}')")
        if self.output is not None:
            for word in results:
                self.output.write(word + "\n")

class CandidatePool:
    """Unfiltered, non-deduplicated collection of passphrase components"""

    def __init__(self):
        self._items: List[str] = []
        self._lock = Lock()

    def add(self, word: str):
        with self._lock:
            self._items.append(word)

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

# =============================================
# MUTATION ORCHESTRATOR
# =============================================
Emit = Callable[[str], object]

class Mutator:
    """
    Applies the configured transformations to one word at a time.

    Stateless across words: every entry point takes the destination as an
    `emit` callable, so the same Mutator can feed the sink, the passphrase
    component pool, or a local staging list concurrently.
    """

    def __init__(self, config: MutationConfig, current_year: Optional[int] = None):
        self.config = config
        self.recipe = parse_recipe(config.custom_recipe)
        year = current_year if current_year is not None else datetime.now().year
        self.prefixes = split_affixes(config.prefix_strings)
        self.suffixes = split_affixes(config.suffix_strings)
        self.years = number_range(config.years_range, year)
        self.prefix_numbers = number_range(config.prefix_range, year)
        self.suffix_numbers = number_range(config.suffix_range, year)

    def _within_budget(self, word: str, count: int, what: str) -> bool:
        if count <= self.config.combination_budget:
            return True
        parallel_log(f"Skipping {what} for '{word}': {count:,} variants exceeds "
                     f"budget of {self.config.combination_budget:,}", logging.WARNING)
        return False

    def variants(self, word: str) -> Set[str]:
        """Single pass: the word plus every enabled catalog transform, unioned"""
        cfg = self.config
        res = {word}
        if cfg.double:
            res.add(double(word))
        if cfg.reverse:
            res.add(reverse(word))
        if cfg.capital:
            res.add(capitalize(word))
        if cfg.lower:
            res.add(lower(word))
        if cfg.upper:
            res.add(upper(word))
        if cfg.swap:
            res.add(swap_case(word))
        if self.prefixes:
            res.update(prefix_variants(word, self.prefixes))
        if self.suffixes:
            res.update(suffix_variants(word, self.suffixes))
        if cfg.common_words:
            res.update(common_word_variants(word, cfg.common_words))

        if cfg.full_leet:
            if self._within_budget(word, count_full_leet(word), "full leet"):
                res.update(full_leet(word))
        elif cfg.leet:
            res.update(simple_leet(word))

        if cfg.all_cases:
            if self._within_budget(word, count_all_cases(word), "all-case permutations"):
                res.update(all_cases(word))
        if cfg.punctuation:
            res.update(punctuation_variants(word))
        if self.years:
            res.update(prefix_variants(word, self.years))
            res.update(suffix_variants(word, self.years))
        if self.prefix_numbers:
            res.update(prefix_variants(word, self.prefix_numbers))
        if self.suffix_numbers:
            res.update(suffix_variants(word, self.suffix_numbers))
        return res

    def mutate_once(self, word: str, emit: Emit):
        if self.recipe:
            emit(apply_recipe(word, self.recipe))
            return
        for variant in self.variants(word):
            emit(variant)

    def chain_mutate(self, word: str, emit: Emit):
        """Two-stage composition: mutate, then mutate every intermediate result"""
        staged: List[str] = []
        self.mutate_once(word, staged.append)
        for candidate in staged:
            self.mutate_once(candidate, emit)

    def mutate(self, word: str, emit: Emit):
        # Level 1 is accepted but behaves like level 0
        if self.config.mutation_level >= 2:
            self.chain_mutate(word, emit)
        else:
            self.mutate_once(word, emit)

# =============================================
# WORKER POOL
# =============================================
_STOP = object()

class WorkerPool:
    """Fixed set of threads draining a bounded queue of words through a Mutator"""

    def __init__(self, mutator: Mutator, thread_count: int, capacity: int = QUEUE_CAPACITY):
        self.mutator = mutator
        self.thread_count = max(1, thread_count)
        self.capacity = capacity

    def run(self, words: Iterable[str], emit: Emit, total: Optional[int] = None) -> int:
        """
        Mutate every word, sending candidates to `emit`. Blocks until all
        workers have drained the queue; returns the number of words processed.
        """
        jobs: "queue.Queue" = queue.Queue(maxsize=self.capacity)
        failures: List[Tuple[str, Exception]] = []

        def worker(worker_id: int) -> int:
            processed = 0
            while True:
                word = jobs.get()
                if word is _STOP:
                    return processed
                try:
                    self.mutator.mutate(word, emit)
                except Exception as e:
                    # Keep draining so the producer never blocks on a full queue
                    parallel_log(f"Worker {worker_id}: error mutating '{word}': {e}", logging.ERROR)
                    failures.append((word, e))
                processed += 1

        processed = 0
        with ThreadPoolExecutor(max_workers=self.thread_count,
                                thread_name_prefix="passmut-worker") as executor:
            futures = {executor.submit(worker, i): i for i in range(self.thread_count)}
            try:
                for word in progress(words, desc="Mutating", total=total, unit="word", leave=False):
                    jobs.put(word)
            finally:
                for _ in futures:
                    jobs.put(_STOP)

            for future in as_completed(futures):
                processed += future.result()

        if failures:
            word, error = failures[0]
            raise MutationError(f"{len(failures):,} word(s) failed to mutate; first was '{word}': {error}")
        return processed

# =============================================
# PASSPHRASE COMBINATOR
# =============================================
class PassphraseCombinator:
    """
    Joins `count` components into passphrases: every ordered tuple when the
    combination space is below PASSPHRASE_EXHAUSTIVE_LIMIT, otherwise
    PASSPHRASE_SAMPLE_COUNT uniformly sampled tuples.
    """

    def __init__(self, count: int, separator: str = "-", rng: Optional[random.Random] = None):
        self.count = count
        self.separator = separator
        self.rng = rng or random.Random()

    def is_exhaustive(self, pool_size: int) -> bool:
        if pool_size <= 1:
            return True
        # Stop multiplying as soon as the limit is reached; count is user input
        expected = 1
        for _ in range(self.count):
            expected *= pool_size
            if expected >= PASSPHRASE_EXHAUSTIVE_LIMIT:
                return False
        return True

    def exhaustive(self, pool: Sequence[str]) -> Iterator[str]:
        for combo in itertools.product(pool, repeat=self.count):
            yield self.separator.join(combo)

    def sampled(self, pool: Sequence[str]) -> Iterator[str]:
        size = len(pool)
        for _ in range(PASSPHRASE_SAMPLE_COUNT):
            yield self.separator.join(pool[self.rng.randrange(size)] for _ in range(self.count))

    def generate(self, pool: Sequence[str], emit: Emit) -> int:
        """Feed passphrases to emit; returns how many were generated (pre-filter)"""
        if not pool:
            raise MutationError("Component pool is empty, cannot generate passphrases")

        if self.is_exhaustive(len(pool)):
            log.info(f"Passphrases: exhaustive, {len(pool):,}^{self.count} combinations")
            candidates = self.exhaustive(pool)
        else:
            log.info(f"Passphrases: sampling {PASSPHRASE_SAMPLE_COUNT:,} of "
                     f"{len(pool):,}^{self.count} combinations")
            candidates = self.sampled(pool)

        generated = 0
        for phrase in candidates:
            emit(phrase)
            generated += 1
        return generated

# =============================================
# PIPELINE DRIVER
# =============================================
@dataclass
class RunStats:
    words: int = 0
    processed: int = 0
    accepted: int = 0
    duplicates: int = 0
    rejected: int = 0
    components: int = 0
    passphrases: int = 0

def _base_words(words: Sequence[str], config: MutationConfig) -> List[str]:
    base = list(words)
    if config.common_words:
        present = set(base)
        for cw in config.common_words:
            if cw not in present:
                base.append(cw)
                present.add(cw)
    return base

def check_permutation_budget(words: Sequence[str], config: MutationConfig) -> int:
    """Number of word permutations; raises InputError when it exceeds the budget"""
    unique = len(set(words))
    total = count_word_permutations(unique)
    if total > config.combination_budget:
        raise InputError(f"{unique:,} words give {total:,} permutations, over the "
                         f"budget of {config.combination_budget:,}; use fewer words")
    return total

def check_setup(words: Sequence[str], config: MutationConfig):
    """Raise any setup error before output is opened or workers start"""
    if not words:
        raise InputError("No words loaded from input")
    if config.perms:
        check_permutation_budget(_base_words(words, config), config)

def expand_wordlist(words: Sequence[str], config: MutationConfig) -> Tuple[Iterable[str], int]:
    """
    Build the producer's word stream: input words plus missing common words,
    optionally replaced by word permutations, plus the acronym.
    Returns the (lazy) stream and its length.
    """
    base = _base_words(words, config)

    stream: Iterable[str]
    if config.perms:
        unique = list(dict.fromkeys(base))
        total = check_permutation_budget(base, config)
        stream = word_permutations(unique, " " if config.space else "")
    else:
        stream = base
        total = len(base)

    if config.acronym:
        stream = itertools.chain(stream, [acronym(words)])
        total += 1
    return stream, total

def run_pipeline(words: Sequence[str], config: MutationConfig, output: Optional[TextIO],
                 current_year: Optional[int] = None) -> RunStats:
    """
    Mutate `words` per `config` and write accepted candidates to `output`,
    one per line. Raises PassmutError subclasses on setup failures.
    """
    check_setup(words, config)

    stream, total = expand_wordlist(words, config)
    mutator = Mutator(config, current_year)
    pool = WorkerPool(mutator, config.thread_count)
    sink = ResultSink(config, output)
    stats = RunStats(words=len(words))

    log.info(f"Mutating {total:,} words with {pool.thread_count} worker(s)")
    if config.passphrase_count > 0:
        components = CandidatePool()
        stats.processed = pool.run(stream, components.add, total)
        stats.components = len(components)
        log.info(f"Collected {stats.components:,} passphrase components")
        rng = random.Random(config.seed)
        combinator = PassphraseCombinator(config.passphrase_count, config.passphrase_separator, rng)
        # Sorted so a seed picks the same components whatever the worker or set order
        stats.passphrases = combinator.generate(sorted(components.snapshot()), sink.submit)
    else:
        stats.processed = pool.run(stream, sink.submit, total)

    sink.flush()
    stats.accepted = sink.accepted
    stats.duplicates = sink.duplicates
    stats.rejected = sink.rejected
    return stats

# =============================================
# INPUT / OUTPUT
# =============================================
def find_inputs(spec: Optional[str]) -> List[str]:
    """
    Expand a comma-separated input spec into paths. "-" is stdin; parts may
    be globs, files or directories (recursed).
    """
    if not spec or spec == "-":
        return ["-"]
    out: List[str] = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if part == "-":
            out.append(part)
            continue
        matches = sorted(glob.glob(os.path.expanduser(part))) if any(c in part for c in "*?[") else [part]
        for match in matches:
            ppath = Path(match).expanduser()
            if ppath.is_dir():
                out.extend(str(f) for f in sorted(ppath.rglob("*"))
                           if f.is_file() and f.stat().st_size > 0)
            else:
                out.append(str(ppath))
    return out

def load_words(stream: Iterable[str]) -> List[str]:
    """Trimmed, non-empty lines"""
    words = []
    for line in stream:
        w = line.strip()
        if w:
            words.append(w)
    return words

def read_words(paths: Iterable[str]) -> List[str]:
    words: List[str] = []
    for p in paths:
        if p == "-":
            if sys.stdin.isatty():
                continue
            words.extend(load_words(sys.stdin))
            continue
        try:
            with open(p, "r", encoding="utf-8", errors="ignore") as f:
                loaded = load_words(f)
        except OSError as e:
            log.warning(f"Failed to open {p}: {e}")
            continue
        log.info(f"Reading wordlist: {p} ({len(loaded):,} words)")
        words.extend(loaded)
    return words

def load_word_file(path: str, what: str) -> List[str]:
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            return load_words(f)
    except OSError as e:
        raise InputError(f"Failed to load {what} file {path}: {e}") from e

@contextlib.contextmanager
def open_output(path: str) -> Iterator[TextIO]:
    if not path or path == "-":
        yield sys.stdout
        sys.stdout.flush()
        return
    try:
        f = open(path, "w", encoding="utf-8")
    except OSError as e:
        raise InputError(f"Cannot open output file {path}: {e}") from e
    with f:
        yield f

# =============================================
# ANALYSIS REPORT
# =============================================
def _length_chart(lengths: Counter) -> List[str]:
    if not lengths:
        return []
    peak = max(lengths.values())
    lines = []
    for k in sorted(lengths):
        v = lengths[k]
        bar = max(1, (v * 40) // peak)
        lines.append(f"{k:2d} [{v:6d}] {'█' * bar}")
    return lines

def analyze_wordlist(words: Sequence[str]) -> str:
    """Human-readable composition, strength and length report for a wordlist"""
    total = len(words)
    if total == 0:
        return "No words to analyze."

    has_lower = sum(1 for w in words if set(w) & _ASCII_LOWER)
    has_upper = sum(1 for w in words if set(w) & _ASCII_UPPER)
    has_digit = sum(1 for w in words if set(w) & _ASCII_DIGITS)
    has_special = sum(1 for w in words if set(w) - _ASCII_ALNUM)
    scores = Counter(strength(w) for w in words)
    lengths = Counter(len(w) for w in words)
    avg = sum(s * n for s, n in scores.items()) / total

    def pct(n: int) -> float:
        return n / total * 100

    lines = [
        f"passmut v{__version__} Analysis Report — {datetime.now():%Y-%m-%d %H:%M}",
        "====================================",
        f"Total words: {total:,}",
        f"Contains lowercase: {has_lower} ({pct(has_lower):.1f}%)",
        f"Contains uppercase: {has_upper} ({pct(has_upper):.1f}%)",
        f"Contains numbers:   {has_digit} ({pct(has_digit):.1f}%)",
        f"Contains specials:  {has_special} ({pct(has_special):.1f}%)",
        "",
        "Strength Distribution (0-4):",
    ]
    for score in range(5):
        lines.append(f"  Score {score}: {scores[score]:6d} ({pct(scores[score]):5.1f}%)")
    lines.append(f"Avg Strength: {avg:.2f} / 4.00")
    lines.append("")
    lines.append("Length Distribution Chart:")
    lines.extend(_length_chart(lengths))
    return "\n".join(lines)

# =============================================
# CLI
# =============================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passmut",
        description="passmut — password mutation engine",
        epilog="Crunch mask: . any, # digit, ^ upper, % lower, & special. "
               "Ranges: START-END, END may be 'current'.",
    )
    io_group = parser.add_argument_group("config & io")
    io_group.add_argument("-f", "--file", help="Input file(s): comma-separated, globs, directories, - for stdin")
    io_group.add_argument("-o", "--output", default="-", help="Output file, - for stdout (default)")
    io_group.add_argument("-n", "--threads", type=int, default=DEFAULT_THREADS,
                          help=f"Number of worker threads (default: {DEFAULT_THREADS})")
    io_group.add_argument("-a", "--analyze", action="store_true",
                          help="Print a statistical report of the input instead of mutating")
    io_group.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    io_group.add_argument("--verbose", action="store_true", help="Debug logging")
    io_group.add_argument("-v", "--version", action="version", version=f"passmut v{__version__}")

    flt = parser.add_argument_group("constraints & exclusions")
    flt.add_argument("-m", "--min", type=int, default=0, help="Minimum word length")
    flt.add_argument("-x", "--max", type=int, default=0, help="Maximum word length")
    flt.add_argument("-cr", "--crunch", help="Crunch-style mask filter, e.g. '....#'")
    flt.add_argument("-ms", "--min-strength", type=int, default=0, help="Minimum strength score (0-4)")
    flt.add_argument("--exclude-common", help="File of passwords to discard from results")
    flt.add_argument("--no-numbers", action="store_true", help="Exclude words with numbers")
    flt.add_argument("--no-symbols", action="store_true", help="Exclude words with symbols")
    flt.add_argument("--no-capitals", action="store_true", help="Exclude words with capitals")

    pipe = parser.add_argument_group("sorting, passphrases & recipes")
    pipe.add_argument("-S", "--sort", choices=["a", "e"],
                      help="Sort mode: 'a' alphabetical, 'e' efficacy (likely passwords first)")
    pipe.add_argument("-L", "--level", type=int, default=0, choices=MUTATION_LEVELS,
                      help="Mutation level: 2 chains two mutation passes")
    pipe.add_argument("-pp", "--passphrase", type=int, default=0,
                      help="Generate passphrases of N mutated words")
    pipe.add_argument("--sep", default="-", help="Passphrase separator (default: '-')")
    pipe.add_argument("--seed", type=int, default=None, help="Random seed for passphrase sampling")
    pipe.add_argument("--rules", help="Ordered recipe replacing the flags, e.g. '-r,--upper,-t'")
    pipe.add_argument("--combination-budget", type=int, default=DEFAULT_COMBINATION_BUDGET,
                      help=f"Largest per-word expansion allowed (default: {DEFAULT_COMBINATION_BUDGET:,})")

    txt = parser.add_argument_group("text manipulation")
    txt.add_argument("-c", "--capital", action="store_true", help="Capitalise the word")
    txt.add_argument("-u", "--upper", action="store_true", help="Uppercase the word")
    txt.add_argument("-l", "--lower", action="store_true", help="Lowercase the word")
    txt.add_argument("-s", "--swap", action="store_true", help="Swap the case of the word")
    txt.add_argument("-r", "--reverse", action="store_true", help="Reverse the word")
    txt.add_argument("-d", "--double", action="store_true", help="Double each word")
    txt.add_argument("-t", "--leet", action="store_true", help="l33t speak the word")
    txt.add_argument("-T", "--full-leet", action="store_true", help="All l33t possibilities")
    txt.add_argument("-ac", "--all-cases", action="store_true",
                     help="All case permutations (warning: huge output)")
    txt.add_argument("-p", "--perms", action="store_true", help="Permutate all the words")
    txt.add_argument("--space", action="store_true", help="Add spaces between permutated words")
    txt.add_argument("-A", "--acronym", action="store_true", help="Create an acronym from the input words")

    aff = parser.add_argument_group("append / prepend")
    aff.add_argument("-C", "--common", nargs="?", const=BUILT_IN_COMMON,
                     help="Add common words (built-in list, or one per line from FILE)")
    aff.add_argument("-ps", "--prefix-strings", help="Strings to add to the start (comma-separated)")
    aff.add_argument("-ss", "--suffix-strings", help="Strings to add to the end (comma-separated)")
    aff.add_argument("-pr", "--prefix-range", help="Range of numbers to add to the start, e.g. 0-99")
    aff.add_argument("-sr", "--suffix-range", help="Range of numbers to add to the end, e.g. 0-99")
    aff.add_argument("-y", "--years", nargs="?", const=DEFAULT_YEARS_RANGE,
                     help=f"Add a range of years to start and end (default: {DEFAULT_YEARS_RANGE})")
    aff.add_argument("--punctuation", action="store_true", help=f"Append punctuation ({PUNCTUATION})")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv and sys.stdin.isatty():
        parser.print_help(sys.stderr)
        return 0
    args = parser.parse_args(argv)

    signal.signal(signal.SIGINT, sigint_handler)
    if args.quiet:
        logging.getLogger().setLevel(logging.WARNING)
    elif args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        words = read_words(find_inputs(args.file))
        if not words:
            raise InputError("No words loaded from input")
        log.info(f"Loaded {len(words):,} input words")

        if args.analyze:
            print(analyze_wordlist(words))
            return 0

        config = MutationConfig.from_args(args)
        check_setup(words, config)
        with open_output(args.output) as out:
            stats = run_pipeline(words, config, out)
    except PassmutError as e:
        log.error(str(e))
        return 1

    log.info(f"Done: {stats.accepted:,} candidates written, {stats.duplicates:,} duplicates "
             f"and {stats.rejected:,} filtered out")
    return 0

if __name__ == "__main__":
    sys.exit(main())
