"""Tests for the scalable dataset generator."""

from dataclasses import replace

import pytest

from loadsim.core import ConfigurationError
from loadsim.dataset import (
    generate_evidence_batched,
    generate_evidence_for_subject,
    generate_scalable_dataset,
    generate_subjects_batched,
    validate_performance_config,
    validate_performance_mode,
)
from loadsim.models import (
    FailureSimulationConfig,
    PerformanceLimits,
    create_default_config,
    get_evidence_per_subject,
    get_subject_count_for_preset,
)
from loadsim.rng import SeededRandom


class TestPresets:
    """Tests for presets and densities."""

    def test_preset_counts(self):
        assert get_subject_count_for_preset("1k") == 1000
        assert get_subject_count_for_preset("5k") == 5000
        assert get_subject_count_for_preset("10k") == 10000
        assert get_subject_count_for_preset("custom") == 1000

    def test_density_counts(self):
        assert get_evidence_per_subject("low") == 5
        assert get_evidence_per_subject("medium") == 25
        assert get_evidence_per_subject("high") == 100

    def test_default_config(self):
        config = create_default_config()
        assert config.subject_count == 1000
        assert config.parallel_runs == 5
        assert config.detection_mode == "simulated"
        assert config.seed == 42

    def test_preset_override_sets_subjects(self):
        assert create_default_config(dataset_size="5k").subject_count == 5000


class TestValidation:
    """Invalid configurations are rejected before generation."""

    @pytest.mark.parametrize("overrides", [
        {"special_category_ratio": 1.5},
        {"special_category_ratio": -0.1},
        {"parallel_runs": 0},
        {"parallel_runs": 26},
        {"evidence_density": "extreme"},
        {"detection_mode": "quantum"},
        {"dataset_size": "1m"},
        {"dataset_size": "custom", "subject_count": 50001},
        {"dataset_size": "custom", "subject_count": 0},
        {"limits": PerformanceLimits(batch_size=0)},
        {"limits": PerformanceLimits(max_evidence_items_per_run=0)},
    ])
    def test_invalid_config(self, overrides):
        config = create_default_config(**overrides)
        assert validate_performance_config(config) is not None
        with pytest.raises(ConfigurationError):
            generate_scalable_dataset(config)

    def test_total_evidence_at_cap(self):
        """50,000 subjects at high density is exactly the 5,000,000 item cap."""
        config = create_default_config(dataset_size="custom", subject_count=50000,
                                       evidence_density="high")
        assert config.total_evidence == 5_000_000
        assert validate_performance_config(config) is None

    def test_all_failures_rejected(self):
        config = replace(create_default_config(), failures=FailureSimulationConfig(
            True, True, True, True))
        assert validate_performance_config(config) is not None

    def test_valid_default(self):
        assert validate_performance_config(create_default_config()) is None

    def test_performance_mode_environments(self):
        assert validate_performance_mode("development") is None
        assert validate_performance_mode("test") is None
        assert validate_performance_mode("production") is not None
        assert validate_performance_mode("production", tenant_slug="demo-acme") is None


class TestBatching:
    """Tests for batched generation."""

    def test_five_subjects_low_batch_ten(self):
        """5 subjects x 5 items in batches of 10 -> 3 batches, 25 items."""
        subjects = next(generate_subjects_batched(5, SeededRandom(1)))
        batches = list(generate_evidence_batched(subjects, 5, batch_size=10))
        assert len(batches) == 3
        assert all(len(b.items) <= 10 for b in batches)
        assert sum(len(b.items) for b in batches) == 25
        assert [b.batch_index for b in batches] == [0, 1, 2]

    def test_subject_batches(self):
        batches = list(generate_subjects_batched(1234, SeededRandom(1), batch_size=500))
        assert [len(b) for b in batches] == [500, 500, 234]

    def test_peak_bounded_by_batch_size(self):
        config = create_default_config(dataset_size="custom", subject_count=300,
                                       evidence_density="medium",
                                       limits=PerformanceLimits(batch_size=64))
        dataset = generate_scalable_dataset(config)
        assert dataset.peak_batch_items <= 64
        assert dataset.batch_count == -(-7500 // 64)


class TestDataset:
    """Tests for generate_scalable_dataset."""

    def test_enterprise_scale(self):
        """10,000 subjects at medium density -> 250,000 items."""
        config = create_default_config(dataset_size="10k", evidence_density="medium")
        dataset = generate_scalable_dataset(config)
        assert dataset.total_subjects == 10000
        assert dataset.total_evidence_items == 250000
        assert sum(dataset.items_by_provider.values()) == 250000

    def test_provider_breakdown_sums(self, small_dataset):
        assert sum(small_dataset.items_by_provider.values()) == small_dataset.total_evidence_items
        assert set(small_dataset.items_by_provider) == {
            "mail", "document-store", "file-store", "other"}

    def test_provider_distribution_roughly_weighted(self):
        config = create_default_config(dataset_size="1k", evidence_density="medium")
        counts = generate_scalable_dataset(config).items_by_provider
        assert counts["mail"] > counts["document-store"] > counts["file-store"] > counts["other"]

    def test_same_seed_same_dataset(self, small_config):
        a = generate_scalable_dataset(small_config)
        b = generate_scalable_dataset(small_config)
        assert a.subjects == b.subjects
        assert a.items_by_provider == b.items_by_provider
        assert a.total_evidence_items == b.total_evidence_items

    def test_different_seed_different_subjects(self, small_config):
        a = generate_scalable_dataset(small_config)
        b = generate_scalable_dataset(replace(small_config, seed=43))
        assert a.subjects != b.subjects

    def test_special_category_count(self):
        config = create_default_config(dataset_size="custom", subject_count=200,
                                       special_category_ratio=0.15)
        dataset = generate_scalable_dataset(config)
        assert dataset.special_category_subjects == 30

    def test_special_subjects_have_special_item(self, small_dataset):
        for subject in small_dataset.subjects:
            items = generate_evidence_for_subject(subject, 5)
            has_special = any(i.contains_special_category for i in items)
            assert has_special == subject.is_special_category

    def test_evidence_independent_of_order(self, small_dataset):
        """A subject's evidence depends only on the subject."""
        subject = small_dataset.subjects[17]
        assert generate_evidence_for_subject(subject, 5) == generate_evidence_for_subject(subject, 5)

    def test_zero_ratio(self):
        config = create_default_config(dataset_size="custom", subject_count=50,
                                       special_category_ratio=0.0)
        dataset = generate_scalable_dataset(config)
        assert dataset.special_category_subjects == 0
        assert dataset.special_category_items == 0

    def test_dataset_receipt(self, small_dataset):
        assert small_dataset.receipt["receipt_type"] == "dataset"
        assert small_dataset.receipt["total_evidence_items"] == 500

    def test_content_bytes_is_utf8_length(self, small_dataset):
        item = generate_evidence_for_subject(small_dataset.subjects[0], 5)[0]
        assert replace(item, content="abc").content_bytes == 3
        assert replace(item, content="Müller").content_bytes == 7
