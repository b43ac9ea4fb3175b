"""CLI: conversation-memory config validate, analyze, entities."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ..classifiers import ClassifierPipeline, KeywordIntentClassifier, KeywordPhaseClassifier
from ..config import load_config, validate_config
from ..core.entity_accumulator import EntityAccumulator
from ..core.monitor import analyze_token_usage
from ..core.relevance import RelevanceScorer
from ..core.retention import RetentionPlanner
from ..token_counter import create_token_counter
from ..types import (
    AccumulatedEntities,
    ConversationMemoryError,
    ExtractedEntities,
    IntentContext,
    Message,
    MessageRole,
    ScoringContext,
)


def _read_json(path: str | None):
    if path:
        text = Path(path).read_text()
    else:
        text = sys.stdin.read()
    return json.loads(text)


def _parse_messages(raw) -> list[Message]:
    """Accept a list of {role, content} dicts or {"messages": [...]}."""
    if isinstance(raw, dict):
        raw = raw.get("messages", [])
    messages = []
    for i, m in enumerate(raw):
        role = m.get("role", "user")
        if role == "assistant":
            role = MessageRole.BOT
        kwargs = {"role": role, "content": m["content"]}
        kwargs["id"] = m.get("id") or f"msg_{i + 1}"
        if m.get("session_id"):
            kwargs["session_id"] = m["session_id"]
        messages.append(Message(**kwargs))
    return messages


async def _detect_intent_and_phase(messages: list[Message]) -> tuple[IntentContext, str]:
    intent_pipeline = ClassifierPipeline([KeywordIntentClassifier()])
    intent = await intent_pipeline.detect_intent(messages)
    phase = await KeywordPhaseClassifier().classify_transcript(messages)
    return intent, phase


def cmd_config_validate(args):
    """Validate config file."""
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    else:
        print("Config is valid.")
        print(f"  Token limit: {config.compression.max_token_limit:,}")
        print(f"  Threshold: {config.compression.token_threshold_percentage}%")
        print(f"  Recent turns kept: {config.compression.recent_turns_to_preserve}")
        print(f"  Vector cache: {config.vector_cache.max_vectors:,} ({config.vector_cache.eviction_policy})")


def cmd_analyze(args):
    """Token usage, relevance tiers and retention plan for a transcript."""
    config = load_config(args.config)
    messages = _parse_messages(_read_json(args.input))
    if not messages:
        print("No messages to analyze.")
        return

    token_counter = create_token_counter(config.token_counter)
    analysis = analyze_token_usage(messages, config.compression, token_counter)

    intent, phase = asyncio.run(_detect_intent_and_phase(messages))
    if args.intent:
        intent = IntentContext(intent=args.intent, confidence=args.intent_confidence)
    if args.phase:
        phase = args.phase

    entities = None
    if args.entities:
        entities = AccumulatedEntities.from_dict(_read_json(args.entities))

    context = ScoringContext(
        entities=entities,
        intent=intent,
        lead_score=args.lead_score,
        conversation_phase=phase,
        adaptive_decay=config.relevance.adaptive_decay,
    )
    scores = RelevanceScorer().score_messages(messages, context)
    planner = RetentionPlanner(
        config.relevance.max_messages, config.relevance.max_tokens, token_counter,
    )
    plan = planner.plan(messages, scores)
    retained_ids = {m.id for m in plan.retained}

    if args.json:
        print(json.dumps({
            "token_usage": {
                "current_tokens": analysis.current_tokens,
                "max_tokens": analysis.max_tokens,
                "utilization_percentage": round(analysis.utilization_percentage, 2),
                "needs_compression": analysis.needs_compression,
                "tokens_to_save": analysis.tokens_to_save,
            },
            "intent": intent.intent,
            "phase": phase,
            "tier_counts": plan.tier_counts,
            "messages": [
                {
                    "id": s.message_id,
                    "score": round(s.overall_score, 4),
                    "tier": s.tier.value,
                    "retained": s.message_id in retained_ids,
                    "reasons": list(s.reasons),
                }
                for s in scores
            ],
        }, indent=2))
        return

    print(f"Tokens:      {analysis.current_tokens:,} / {analysis.max_tokens:,} "
          f"({analysis.utilization_percentage:.1f}%)")
    print(f"Compress:    {'yes' if analysis.needs_compression else 'no'}"
          f" (save {analysis.tokens_to_save:,} tokens)")
    print(f"Intent:      {intent.intent} ({intent.confidence:.2f})")
    print(f"Phase:       {phase}")
    print()
    print(f"{'Message':<14} {'Role':<13} {'Score':>6} {'Tier':<9} {'Keep':<5} Reasons")
    print("-" * 78)
    for message, score in zip(messages, scores):
        keep = "yes" if message.id in retained_ids else "-"
        print(
            f"{message.id[:14]:<14} {message.role.value:<13} {score.overall_score:>6.3f} "
            f"{score.tier.value:<9} {keep:<5} {'; '.join(score.reasons)}"
        )
    print()
    print(f"Retained {len(plan.retained)} messages ({plan.retained_tokens:,} tokens), "
          f"{len(plan.to_compress)} to compress")


def cmd_entities(args):
    """Fold a sequence of extractions and print the accumulated context."""
    config = load_config(args.config)
    raw = _read_json(args.input)
    if isinstance(raw, dict):
        raw = raw.get("extractions", [])

    accumulator = EntityAccumulator(config.entities)
    entities = AccumulatedEntities.create()
    for i, extraction in enumerate(raw):
        message_id = extraction.get("message_id") or f"msg_{i + 1}"
        fresh = ExtractedEntities.from_dict(
            extraction, session_id=args.session, message_id=message_id,
        )
        result = accumulator.merge(entities, fresh, accumulator.context_for(message_id))
        entities = result.accumulated_entities

    if args.json:
        print(json.dumps(entities.get_all_entities_summary(), indent=2))
        return

    prompt = accumulator.build_context_prompt(entities)
    print(prompt or "No entities accumulated.")
    print()
    print(f"Extractions applied: {entities.total_extractions}")


def main():
    parser = argparse.ArgumentParser(
        prog="conversation-memory",
        description="Working memory for multi-turn conversational agents",
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # analyze
    analyze_parser = subparsers.add_parser("analyze", help="Score and plan retention for a transcript")
    analyze_parser.add_argument("--input", "-i", help="Input file (JSON messages); stdin if omitted")
    analyze_parser.add_argument("--entities", "-e", help="Accumulated entities JSON file")
    analyze_parser.add_argument("--intent", help="Override detected intent")
    analyze_parser.add_argument("--intent-confidence", type=float, default=0.9, help="Confidence for --intent")
    analyze_parser.add_argument("--lead-score", type=float, help="Lead score (0-100)")
    analyze_parser.add_argument("--phase", help="Override detected conversation phase")
    analyze_parser.add_argument("--json", action="store_true", help="Emit JSON")

    # entities
    entities_parser = subparsers.add_parser("entities", help="Accumulate entities from extractions")
    entities_parser.add_argument("--input", "-i", help="Input file (JSON list of extractions); stdin if omitted")
    entities_parser.add_argument("--session", default="cli-session", help="Session ID for corrections")
    entities_parser.add_argument("--json", action="store_true", help="Emit JSON summary")

    # config validate
    config_parser = subparsers.add_parser("config", help="Config operations")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "analyze":
            cmd_analyze(args)
        elif args.command == "entities":
            cmd_entities(args)
        elif args.command == "config":
            if args.config_command == "validate":
                cmd_config_validate(args)
            else:
                print("Usage: conversation-memory config validate")
                sys.exit(1)
    except (ConversationMemoryError, json.JSONDecodeError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
