"""Scalable Dataset Generator

Generates synthetic subjects and their evidence items in fixed-size
batches. Evidence is streamed: only one batch is held at a time, so peak
memory is bounded by the batch size rather than the population.

Every subject carries its own evidence seed, so any slice of the
population can regenerate exactly the same evidence later (the run
scheduler relies on this).
"""

import time
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

from config.constants import (
    DATASET_PRESETS,
    DETECTION_MODES,
    DEMO_TENANT_SLUG_PREFIX,
    EVIDENCE_DENSITY,
    MAX_EVIDENCE_TOTAL,
    MAX_PARALLEL_RUNS,
    MAX_SUBJECTS,
    MIN_PARALLEL_RUNS,
    PERFORMANCE_ALLOWED_ENVIRONMENTS,
    PROVIDER_DISTRIBUTION,
    PROVIDER_ITEM_TYPES,
    SENSITIVE_ITEM_CHANCE,
    SPECIAL_CATEGORIES,
    SPECIAL_ITEM_CHANCE,
)
from config.features import get_environment

from .core import ConfigurationError, emit_receipt
from .failures import validate_failure_config
from .models import PerformanceConfig
from .rng import SeededRandom

FIRST_NAMES = [
    "Anna", "Ben", "Clara", "David", "Elif", "Finn", "Greta", "Hugo",
    "Ines", "Jonas", "Kira", "Lukas", "Mara", "Noah", "Olga", "Paul",
]

LAST_NAMES = [
    "Albers", "Brandt", "Conrad", "Dietz", "Engel", "Fischer", "Graf",
    "Hoffmann", "Jansen", "Keller", "Lorenz", "Meyer", "Neumann", "Otto",
]

DEPARTMENTS = ["Finance", "HR", "Sales", "Engineering", "Legal", "Support", "Operations"]

STREETS = ["Hauptstrasse", "Bahnhofweg", "Lindenallee", "Marktplatz", "Gartenstrasse"]

TITLE_POOLS = {
    "mail": ["Re: Quarterly report", "Meeting notes", "Invoice follow-up", "Weekly status update"],
    "document-store": ["Contract draft.docx", "Onboarding checklist.xlsx", "Policy review.pdf"],
    "file-store": ["Personal notes.txt", "Expense claims.xlsx", "Project plan.docx"],
    "other": ["Ticket export", "CRM record", "Access log extract"],
}

PII_TYPES = ["EMAIL", "PHONE", "IBAN", "NAME", "ADDRESS"]

# Phrases the reference detector recognises as special-category content
SPECIAL_PHRASES = {
    "HEALTH": "medical certificate attached, diagnosis pending",
    "RELIGION": "request for leave on a religious holiday",
    "UNION": "trade union membership fee deduction",
    "POLITICAL_OPINION": "political party donation receipt",
}


@dataclass(frozen=True)
class SyntheticSubject:
    """A synthetic data subject. Never a real person."""
    subject_id: str
    display_name: str
    email: str
    department: str
    is_special_category: bool
    special_categories: tuple
    evidence_seed: int


@dataclass(frozen=True)
class SyntheticEvidenceItem:
    """One synthetic evidence item belonging to a subject."""
    item_id: str
    subject_id: str
    provider: str
    item_type: str
    title: str
    content: str
    injected_pii_types: tuple
    contains_special_category: bool
    sensitivity_score: int

    @property
    def content_bytes(self) -> int:
        return len(self.content.encode("utf-8"))


@dataclass
class EvidenceBatch:
    """A fixed-size slice of the evidence stream."""
    batch_index: int
    items: list


@dataclass
class ScalableDataset:
    """Result of generate_scalable_dataset. Evidence itself is not retained."""
    config: PerformanceConfig
    subjects: list
    total_subjects: int
    total_evidence_items: int
    items_by_provider: dict
    special_category_subjects: int
    special_category_items: int
    generation_time_ms: float
    batch_count: int
    peak_batch_items: int
    receipt: dict = field(default_factory=dict)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_performance_config(config: PerformanceConfig) -> Optional[str]:
    """Validate a configuration.

    Args:
        config: Configuration to check

    Returns:
        Error message, or None if the configuration is valid
    """
    if config.dataset_size not in DATASET_PRESETS:
        return f"Unknown dataset size preset: {config.dataset_size}"
    if config.evidence_density not in EVIDENCE_DENSITY:
        return f"Unknown evidence density: {config.evidence_density}"
    if config.detection_mode not in DETECTION_MODES:
        return f"Unknown detection mode: {config.detection_mode}"
    if not isinstance(config.subject_count, int) or config.subject_count < 1:
        return "subject_count must be a positive integer"
    if config.subject_count > MAX_SUBJECTS:
        return f"subject_count {config.subject_count} exceeds maximum of {MAX_SUBJECTS}"
    if not 0.0 <= config.special_category_ratio <= 1.0:
        return "special_category_ratio must be between 0 and 1"
    if not MIN_PARALLEL_RUNS <= config.parallel_runs <= MAX_PARALLEL_RUNS:
        return f"parallel_runs must be between {MIN_PARALLEL_RUNS} and {MAX_PARALLEL_RUNS}"
    if config.total_evidence > MAX_EVIDENCE_TOTAL:
        return (f"Total evidence {config.total_evidence} exceeds maximum of "
                f"{MAX_EVIDENCE_TOTAL}")

    limits = config.limits
    if limits.batch_size < 1:
        return "batch_size must be at least 1"
    if limits.max_evidence_items_per_run < 1:
        return "max_evidence_items_per_run must be at least 1"
    if limits.max_content_scan_bytes < 1:
        return "max_content_scan_bytes must be at least 1"

    return validate_failure_config(config.failures)


def ensure_valid_config(config: PerformanceConfig):
    """Raise ConfigurationError if the configuration is invalid."""
    error = validate_performance_config(config)
    if error:
        raise ConfigurationError(error)


def validate_performance_mode(environment: Optional[str] = None,
                              tenant_slug: Optional[str] = None) -> Optional[str]:
    """Performance simulations only run outside production or for demo tenants.

    Args:
        environment: Deployment environment, defaults to LOADSIM_ENV
        tenant_slug: Tenant requesting the simulation

    Returns:
        Error message, or None if allowed
    """
    env = (environment or get_environment()).lower()
    if env in PERFORMANCE_ALLOWED_ENVIRONMENTS:
        return None
    if tenant_slug and tenant_slug.startswith(DEMO_TENANT_SLUG_PREFIX):
        return None
    return (f"Performance mode is not allowed in '{env}' "
            "(development, test or a demo tenant only)")


# =============================================================================
# SUBJECTS
# =============================================================================

def _make_subject(index: int, rng: SeededRandom, special: bool) -> SyntheticSubject:
    first = rng.pick(FIRST_NAMES)
    last = rng.pick(LAST_NAMES)
    categories = ()
    if special:
        categories = tuple(sorted(rng.sample(SPECIAL_CATEGORIES, rng.next_int(1, 2))))
    return SyntheticSubject(
        subject_id=f"SUBJ-{index + 1:06d}",
        display_name=f"{first} {last}",
        email=f"{first.lower()}.{last.lower()}.{index + 1}@synthetic.test",
        department=rng.pick(DEPARTMENTS),
        is_special_category=special,
        special_categories=categories,
        evidence_seed=rng.next_int(0, 2**31 - 1),
    )


def generate_subjects_batched(count: int, rng: SeededRandom,
                              batch_size: int = 500,
                              special_category_ratio: float = 0.0) -> Iterator[list]:
    """Generate subjects in batches.

    Exactly round(special_category_ratio * count) subjects are marked as
    special-category, selected with the seeded source.

    Args:
        count: Number of subjects
        rng: Seeded random source
        batch_size: Subjects per yielded batch
        special_category_ratio: Fraction of special-category subjects

    Yields:
        Lists of at most batch_size SyntheticSubject
    """
    special_count = round(special_category_ratio * count)
    special_indices = set(rng.sample(range(count), special_count))

    batch = []
    for index in range(count):
        batch.append(_make_subject(index, rng, index in special_indices))
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


# =============================================================================
# EVIDENCE
# =============================================================================

def _pii_fragment(pii_type: str, subject: SyntheticSubject, rng: SeededRandom) -> str:
    if pii_type == "EMAIL":
        return f"contact {subject.email}"
    if pii_type == "PHONE":
        return f"call +49 30 {rng.next_int(1000000, 9999999)}"
    if pii_type == "IBAN":
        return f"IBAN DE{rng.next_int(10, 99)}{rng.next_int(10**17, 10**18 - 1)}"
    if pii_type == "NAME":
        return f"regarding {subject.display_name}"
    return f"address {rng.next_int(1, 200)} {rng.pick(STREETS)}"


def generate_evidence_for_subject(subject: SyntheticSubject,
                                  items_per_subject: int) -> list:
    """Generate the evidence items of one subject.

    Output depends only on the subject (its evidence seed) and the item
    count, never on generation order. The first item of a special-category
    subject always carries special-category content.

    Args:
        subject: Owning subject
        items_per_subject: Number of items to generate

    Returns:
        List of SyntheticEvidenceItem
    """
    rng = SeededRandom(subject.evidence_seed)
    items = []

    for n in range(items_per_subject):
        provider = rng.weighted_pick(PROVIDER_DISTRIBUTION)
        pii_types = tuple(rng.sample(PII_TYPES, rng.next_int(1, 3)))
        fragments = [_pii_fragment(t, subject, rng) for t in pii_types]

        special = False
        if subject.is_special_category:
            special = n == 0 or rng.chance(SPECIAL_ITEM_CHANCE)
        if special:
            fragments.append(SPECIAL_PHRASES[rng.pick(subject.special_categories)])

        sensitive = special or rng.chance(SENSITIVE_ITEM_CHANCE)
        title = rng.pick(TITLE_POOLS[provider])

        items.append(SyntheticEvidenceItem(
            item_id=f"{subject.subject_id}-E{n + 1:04d}",
            subject_id=subject.subject_id,
            provider=provider,
            item_type=PROVIDER_ITEM_TYPES[provider],
            title=title,
            content=f"{title}: " + "; ".join(fragments),
            injected_pii_types=pii_types,
            contains_special_category=special,
            sensitivity_score=rng.next_int(50, 95) if sensitive else rng.next_int(5, 40),
        ))

    return items


def generate_evidence_batched(subjects: Sequence[SyntheticSubject],
                              items_per_subject: int,
                              batch_size: int = 500) -> Iterator[EvidenceBatch]:
    """Stream the evidence of subjects as fixed-size batches.

    Every batch except possibly the last holds exactly batch_size items.

    Args:
        subjects: Subjects whose evidence to generate
        items_per_subject: Evidence density
        batch_size: Items per batch

    Yields:
        EvidenceBatch in order
    """
    if batch_size < 1:
        raise ConfigurationError("batch_size must be at least 1")

    batch_index = 0
    buffer = []
    for subject in subjects:
        for item in generate_evidence_for_subject(subject, items_per_subject):
            buffer.append(item)
            if len(buffer) == batch_size:
                yield EvidenceBatch(batch_index=batch_index, items=buffer)
                batch_index += 1
                buffer = []
    if buffer:
        yield EvidenceBatch(batch_index=batch_index, items=buffer)


def generate_scalable_dataset(config: PerformanceConfig,
                              rng: Optional[SeededRandom] = None) -> ScalableDataset:
    """Generate the population of a simulation and count its evidence.

    Subjects are kept (they are small); evidence is streamed batch by
    batch and only counted.

    Args:
        config: Simulation configuration (validated first)
        rng: Seeded source, defaults to one seeded with config.seed

    Returns:
        ScalableDataset with exact per-provider counts

    Raises:
        ConfigurationError: If config is invalid (nothing is generated)
    """
    ensure_valid_config(config)
    rng = rng or SeededRandom(config.seed)
    start = time.perf_counter()

    subjects = []
    for batch in generate_subjects_batched(
            config.subject_count, rng, config.limits.batch_size,
            config.special_category_ratio):
        subjects.extend(batch)

    items_by_provider = {provider: 0 for provider in PROVIDER_DISTRIBUTION}
    total = 0
    special_items = 0
    batch_count = 0
    peak = 0

    for batch in generate_evidence_batched(
            subjects, config.evidence_per_subject, config.limits.batch_size):
        batch_count += 1
        peak = max(peak, len(batch.items))
        for item in batch.items:
            items_by_provider[item.provider] += 1
            if item.contains_special_category:
                special_items += 1
        total += len(batch.items)

    generation_time_ms = (time.perf_counter() - start) * 1000
    special_subjects = sum(1 for s in subjects if s.is_special_category)

    receipt = emit_receipt("dataset", {
        "total_subjects": len(subjects),
        "total_evidence_items": total,
        "items_by_provider": items_by_provider,
        "special_category_subjects": special_subjects,
        "batch_count": batch_count,
        "peak_batch_items": peak,
        "generation_time_ms": generation_time_ms,
        "seed": config.seed,
    })

    return ScalableDataset(
        config=config,
        subjects=subjects,
        total_subjects=len(subjects),
        total_evidence_items=total,
        items_by_provider=items_by_provider,
        special_category_subjects=special_subjects,
        special_category_items=special_items,
        generation_time_ms=generation_time_ms,
        batch_count=batch_count,
        peak_batch_items=peak,
        receipt=receipt,
    )
