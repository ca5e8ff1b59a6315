"""Detection Load Runner

Drives a detection pipeline over evidence in batches.

Two modes:
  real       - call a detect(text) function per item and time each batch
  simulated  - derive one aggregate detection record per item from the
               item's injected properties (tests pipeline throughput, not
               pattern-matching cost)
"""

import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from config.constants import (
    CONFIDENCE_HIGH,
    CONFIDENCE_MEDIUM,
    DEFAULT_BATCH_SIZE,
    DETECTION_MODES,
    SIMULATED_CATEGORIES,
    SIMULATED_CONFIDENCE_RANGE,
    SIMULATED_ELEMENT_TYPES,
    SPECIAL_CATEGORIES,
)

from .core import ConfigurationError, emit_receipt
from .dataset import SyntheticEvidenceItem
from .rng import SeededRandom


@dataclass(frozen=True)
class DetectedElement:
    """One finding of a detector."""
    element_type: str
    confidence: float
    confidence_level: str
    special_category: bool = False


@dataclass
class SimulatedDetection:
    """Aggregate detection record for one item in simulated mode."""
    item_id: str
    detected_elements: list
    detected_categories: list
    special_category_suspected: bool


@dataclass
class DetectionBatchResult:
    batch_index: int
    item_count: int
    detection_time_ms: float
    special_category_count: int
    total_detections: int
    skipped_items: int = 0


@dataclass
class DetectionLoadResult:
    mode: str
    total_items: int
    total_detections: int
    special_category_items: int
    total_time_ms: float
    throughput_items_per_sec: float
    skipped_items: int = 0
    batches: list = field(default_factory=list)


def confidence_level(confidence: float) -> str:
    """Map a confidence score to HIGH / MEDIUM / LOW."""
    if confidence >= CONFIDENCE_HIGH:
        return "HIGH"
    if confidence >= CONFIDENCE_MEDIUM:
        return "MEDIUM"
    return "LOW"


# =============================================================================
# REFERENCE DETECTOR
# =============================================================================

_PATTERNS = [
    ("EMAIL", re.compile(r"[\w.+-]+@[\w-]+\.[\w.]+"), 0.95),
    ("PHONE", re.compile(r"\+\d{2}(?: \d+){2,}"), 0.80),
    ("IBAN", re.compile(r"\bDE\d{20}\b"), 0.90),
]

_SPECIAL_KEYWORDS = {
    "HEALTH": ("diagnosis", "medical certificate"),
    "RELIGION": ("religious holiday",),
    "UNION": ("trade union",),
    "POLITICAL_OPINION": ("political party",),
}


def detect(text: str) -> list:
    """Pattern and keyword detector used when no engine is supplied.

    Args:
        text: Content to scan

    Returns:
        List of DetectedElement
    """
    results = []
    for element_type, pattern, confidence in _PATTERNS:
        for _ in pattern.finditer(text):
            results.append(DetectedElement(element_type, confidence, confidence_level(confidence)))

    lowered = text.lower()
    for category, keywords in _SPECIAL_KEYWORDS.items():
        if any(k in lowered for k in keywords):
            results.append(DetectedElement(category, 0.75, confidence_level(0.75),
                                           special_category=True))
    return results


def has_special_category(results: Sequence[DetectedElement]) -> bool:
    return any(r.special_category for r in results)


# =============================================================================
# BATCH RUNNERS
# =============================================================================

def run_real_detection_batch(items: Sequence[SyntheticEvidenceItem], batch_index: int,
                             detector: Optional[Callable] = None,
                             max_content_bytes: Optional[int] = None) -> DetectionBatchResult:
    """Run a detector over one batch.

    Empty content is skipped, and so is content larger than max_content_bytes
    when a limit is given. Oversized items are counted in skipped_items.

    Args:
        items: Evidence items of the batch
        batch_index: Position of the batch in the stream
        detector: detect(text) -> list[DetectedElement], defaults to detect
        max_content_bytes: UTF-8 size above which an item is not scanned

    Returns:
        DetectionBatchResult with measured time
    """
    detector = detector or detect
    start = time.perf_counter()
    total_detections = 0
    special_count = 0
    skipped = 0

    for item in items:
        if not item.content or not item.content.strip():
            continue
        if max_content_bytes is not None and item.content_bytes > max_content_bytes:
            skipped += 1
            continue
        results = detector(item.content)
        total_detections += len(results)
        if has_special_category(results):
            special_count += 1

    return DetectionBatchResult(
        batch_index=batch_index,
        item_count=len(items),
        detection_time_ms=(time.perf_counter() - start) * 1000,
        special_category_count=special_count,
        total_detections=total_detections,
        skipped_items=skipped,
    )


def generate_simulated_detection(item: SyntheticEvidenceItem,
                                 rng: SeededRandom) -> SimulatedDetection:
    """Derive a detection record from an item's injected properties.

    The special-category flag is propagated unchanged.
    """
    low, high = SIMULATED_CONFIDENCE_RANGE
    element_count = max(1, min(len(item.injected_pii_types), rng.next_int(1, 5)))

    elements = []
    for i in range(element_count):
        if i < len(item.injected_pii_types):
            element_type = item.injected_pii_types[i]
        else:
            element_type = rng.pick(SIMULATED_ELEMENT_TYPES)
        confidence = rng.next_float(low, high)
        elements.append(DetectedElement(element_type, confidence, confidence_level(confidence)))

    categories = []
    for i in range(rng.next_int(1, 3)):
        special = item.contains_special_category and i == 0
        category = rng.pick(SPECIAL_CATEGORIES if special else SIMULATED_CATEGORIES)
        confidence = rng.next_float(low, high)
        categories.append(DetectedElement(category, confidence, confidence_level(confidence),
                                          special_category=special))

    return SimulatedDetection(
        item_id=item.item_id,
        detected_elements=elements,
        detected_categories=categories,
        special_category_suspected=item.contains_special_category,
    )


def run_simulated_detection_batch(items: Sequence[SyntheticEvidenceItem],
                                  rng: SeededRandom,
                                  batch_index: int) -> DetectionBatchResult:
    """Simulated detection: one detection record per item."""
    start = time.perf_counter()
    special_count = 0

    for item in items:
        if generate_simulated_detection(item, rng).special_category_suspected:
            special_count += 1

    return DetectionBatchResult(
        batch_index=batch_index,
        item_count=len(items),
        detection_time_ms=(time.perf_counter() - start) * 1000,
        special_category_count=special_count,
        total_detections=len(items),
    )


def run_detection_load(items: Sequence[SyntheticEvidenceItem], mode: str,
                       rng: SeededRandom, batch_size: int = DEFAULT_BATCH_SIZE,
                       detector: Optional[Callable] = None,
                       emit: bool = True,
                       max_content_bytes: Optional[int] = None) -> DetectionLoadResult:
    """Run detection over all items in batches.

    Args:
        items: Evidence items
        mode: "real" or "simulated"
        rng: Seeded source (used by simulated mode)
        batch_size: Items per batch
        detector: Detector for real mode, defaults to detect
        emit: Whether to emit a detection_load receipt
        max_content_bytes: Content scan limit for real mode

    Returns:
        DetectionLoadResult; throughput is 0 when total time is 0

    Raises:
        ConfigurationError: Unknown mode or batch size below 1
    """
    if mode not in DETECTION_MODES:
        raise ConfigurationError(f"Unknown detection mode: {mode}")
    if batch_size < 1:
        raise ConfigurationError("batch_size must be at least 1")

    start = time.perf_counter()
    batches = []

    for offset in range(0, len(items), batch_size):
        batch = items[offset:offset + batch_size]
        batch_index = offset // batch_size
        if mode == "real":
            batches.append(run_real_detection_batch(batch, batch_index, detector,
                                                    max_content_bytes))
        else:
            batches.append(run_simulated_detection_batch(batch, rng, batch_index))

    total_time_ms = (time.perf_counter() - start) * 1000
    result = DetectionLoadResult(
        mode=mode,
        total_items=len(items),
        total_detections=sum(b.total_detections for b in batches),
        special_category_items=sum(b.special_category_count for b in batches),
        total_time_ms=total_time_ms,
        throughput_items_per_sec=(len(items) / total_time_ms) * 1000 if total_time_ms > 0 else 0,
        skipped_items=sum(b.skipped_items for b in batches),
        batches=batches,
    )

    if emit:
        emit_receipt("detection_load", {
            "mode": mode,
            "total_items": result.total_items,
            "total_detections": result.total_detections,
            "special_category_items": result.special_category_items,
            "skipped_items": result.skipped_items,
            "batch_count": len(batches),
            "total_time_ms": total_time_ms,
            "throughput_items_per_sec": result.throughput_items_per_sec,
        })

    return result
