"""
One-shot runner: extract, analyse and generate for a single target.

Usage:
  python scripts/run_workflow.py https://example.com/page --topic "wifi speed"

Without --topic the first suggested content topic is used. Exits non-zero as
soon as a stage does not complete, printing that stage's error.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from seo_workflow.core.logging import get_logger, setup_logging
from seo_workflow.services.stage_client import StageClient
from seo_workflow.workflow.errors import TopicNotAllowedError
from seo_workflow.workflow.machine import StageWorkflow
from seo_workflow.workflow.state import Stage, StageOutcome
from seo_workflow.workflow.summary import generation_summary

setup_logging()
logger = get_logger("run_workflow")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("target", help="page URL to extract")
    parser.add_argument("--topic", default="", help="content topic for generation")
    parser.add_argument("--generation-type", default=None)
    parser.add_argument("--api-key", default=None, help="defaults to DEFAULT_API_KEY")
    parser.add_argument("--keyword", action="append", default=[], help="repeatable")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    async with StageClient() as client:
        workflow = StageWorkflow(client, target=args.target)
        workflow.update_config(credential=args.api_key, generation_type=args.generation_type)

        for stage, run in (
            (Stage.EXTRACTION, workflow.run_extraction),
            (Stage.ANALYSIS, workflow.run_analysis),
        ):
            outcome = await run()
            if outcome is not StageOutcome.COMPLETED:
                logger.error("stage_incomplete", stage=stage.value, outcome=outcome.value)
                print(workflow.state.error_for(stage), file=sys.stderr)
                return 1
            workflow.advance()

        topics = workflow.content_topics()
        try:
            workflow.set_topic(args.topic or (topics[0] if topics else ""))
        except TopicNotAllowedError as e:
            print(f"{e}; choose one of: {', '.join(e.allowed)}", file=sys.stderr)
            return 2
        for keyword in args.keyword:
            workflow.toggle_keyword(keyword)

        outcome = await workflow.run_generation()
        if outcome is not StageOutcome.COMPLETED:
            logger.error("stage_incomplete", stage="generation", outcome=outcome.value)
            print(workflow.state.error_for(Stage.GENERATION), file=sys.stderr)
            return 1

    logger.info("workflow_finished", summary=generation_summary(workflow.state.generated_content))
    print(workflow.state.generated_content)
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
