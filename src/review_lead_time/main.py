"""Entry point for the GitHub pull request review lead time report."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .cli import parse_args
from .config import load_config
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DataValidationError,
)
from .github_client import GitHubClient
from .kpi import collect_records, filter_records, lead_time_samples
from .stats import generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_DATA_VALIDATION = 5


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def orchestrate(argv: Optional[Sequence[str]] = None) -> int:
    """Run the fetch, enrich, filter and report pipeline.

    This is the single place errors are handled: each expected failure is
    logged and mapped to its exit code. Flagged PR lines printed before a
    failure stay on stdout.
    """
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)

        config = load_config(
            owner=args.owner,
            repo=args.repo,
            date_range=args.date_range,
            api_url=args.api_url,
        )
        client = GitHubClient(config=config)

        prs = client.search_pull_requests(config.owner, config.repo, config.date_range)
        records = collect_records(client=client, config=config, prs=prs)
        kept = filter_records(
            records,
            release_title_prefix=config.release_title_prefix,
            excluded_label=config.excluded_label,
        )
        logger.info(
            "Filtered lead time records",
            extra={"records_total": len(records), "records_kept": len(kept)},
        )

        first_comment_lead_times, approved_lead_times = lead_time_samples(kept)
        print(
            generate_report(
                repo_name=config.repo,
                date_range=config.date_range,
                record_count=len(kept),
                first_comment_lead_times=first_comment_lead_times,
                approved_lead_times=approved_lead_times,
            )
        )
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        logger.error("GitHub API error: %s", exc)
        return EXIT_API
    except DataValidationError as exc:
        logger.error("Unexpected GitHub data: %s", exc)
        return EXIT_DATA_VALIDATION
    except Exception:
        logger.exception("Unexpected error while generating the lead time report")
        return EXIT_UNEXPECTED


def main() -> None:
    load_dotenv()
    raise SystemExit(orchestrate())


if __name__ == "__main__":
    main()
