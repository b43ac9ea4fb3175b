"""Tests for TokenUsageMonitor / analyze_token_usage."""

import pytest

from conversation_memory.core.monitor import TokenUsageMonitor, analyze_token_usage
from conversation_memory.types import CompressionConfig, ConfigurationError
from tests.conftest import make_transcript


def test_under_limit_needs_nothing():
    messages = make_transcript(4, chars=40)  # 40 tokens
    analysis = analyze_token_usage(messages, CompressionConfig(max_token_limit=1000))
    assert analysis.current_tokens == 40
    assert analysis.max_tokens == 1000
    assert analysis.utilization_percentage == pytest.approx(4.0)
    assert analysis.needs_compression is False
    assert analysis.tokens_to_save == 0


def test_between_target_and_threshold_saves_nothing():
    # 70% utilization: above the 60% target but under the 85% trigger
    messages = make_transcript(7, chars=40)  # 70 tokens
    analysis = analyze_token_usage(messages, CompressionConfig(max_token_limit=100))
    assert analysis.needs_compression is False
    assert analysis.tokens_to_save == 0


def test_over_threshold_targets_sixty_percent():
    messages = make_transcript(20, chars=60)  # 300 tokens
    analysis = analyze_token_usage(messages, CompressionConfig(max_token_limit=200))
    assert analysis.current_tokens == 300
    assert analysis.utilization_percentage == pytest.approx(150.0)
    assert analysis.needs_compression is True
    assert analysis.tokens_to_save == 300 - 120


def test_threshold_is_inclusive():
    messages = make_transcript(17, chars=20)  # 85 tokens
    analysis = analyze_token_usage(messages, CompressionConfig(max_token_limit=100))
    assert analysis.needs_compression is True
    assert analysis.tokens_to_save == 25


@pytest.mark.parametrize("threshold", [49, 49.9, 95.1, 100])
def test_threshold_out_of_range(threshold):
    config = CompressionConfig(token_threshold_percentage=threshold)
    with pytest.raises(ConfigurationError, match="between 50% and 95%") as exc:
        analyze_token_usage(make_transcript(2), config)
    assert exc.value.field == "token_threshold_percentage"
    assert exc.value.value == threshold


def test_custom_token_counter():
    monitor = TokenUsageMonitor(CompressionConfig(max_token_limit=10), token_counter=lambda t: 5)
    analysis = monitor.analyze(make_transcript(2))
    assert analysis.current_tokens == 10
    assert monitor.last_analysis is analysis
