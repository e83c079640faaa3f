import argparse
import asyncio
import logging
import sys

from tqdm import tqdm

from . import config
from .aggregation import METRIC_HANDLERS, format_percentage
from .articles import analyse_article, reference_preview
from .client import QueryClient
from .comparison import ItemComparisonEngine, parse_identifier_list
from .errors import WikiprovError
from .report import build_item_report, project_links

logger = logging.getLogger(__name__)


def _print_table(headers, rows):
    rows = [[str(cell) for cell in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    print("  ".join(h.ljust(widths[idx]) for idx, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row)))


def cmd_search(client, args):
    hits = client.search(args.term, language=args.language, limit=args.limit)
    if not hits:
        print("No results.")
        return
    for hit in hits:
        print(f"{hit.label} ({hit.id}): {hit.description} ({hit.concept_uri})")


def cmd_item(client, args):
    if args.project:
        links = project_links(client, args.item, args.project)
        if args.project in config.LANGUAGE_PROJECTS:
            print(f"Total {len(links)} languages")
            _print_table(["Language", "Link"], links)
        else:
            noun = "category" if args.project == "commons" else "links"
            print(f"Total {len(links)} {noun}")
            _print_table(["Link"], [(url,) for _prefix, url in links])
        return

    report = build_item_report(client, args.item, args.language)
    print(f"{report.label or config.MISSING_LABEL_PLACEHOLDER} ({report.item})")
    print()
    print(f"Total {len(report.external_identifiers)} external identifiers")
    _print_table(["External identifier", "Value"], report.external_identifiers)
    print()
    percentage = format_percentage(report.referenced_percentage)
    print(
        f"Total {report.referenced_properties} reference statements for a total of "
        f"{report.total_statements} statements ({percentage}%)"
    )
    _print_table(
        ["Property", "Number of statements"],
        [(prop.rsplit("/", 1)[-1], count) for prop, count in report.referenced_by_property.items()],
    )
    print()
    _print_table(
        ["Project", "Links"],
        [(project, len(report.sitelinks.get(project, []))) for project, _ in config.WIKI_PROJECTS],
    )
    for section, error in report.errors.items():
        print(f"[!] {section}: {error}")


def cmd_compare(client, args):
    identifiers = parse_identifier_list(args.items)
    progress = tqdm(total=len(identifiers) * len(METRIC_HANDLERS), desc="Comparing", unit="query")
    engine = ItemComparisonEngine(
        client,
        language=args.language,
        max_workers=args.workers,
        on_settled=lambda _identifier, _metric: progress.update(1),
    )
    try:
        records = asyncio.run(engine.compare_items(identifiers))
    finally:
        progress.close()
        engine.close()

    projects = [project for project, _ in config.WIKI_PROJECTS]
    headers = ["Item", "Label", "External identifiers", "Referenced %"] + projects
    rows = []
    for identifier in identifiers:
        record = records[identifier]
        rows.append(
            [
                identifier,
                record.label or config.MISSING_LABEL_PLACEHOLDER,
                record.external_identifier_count,
                format_percentage(record.referenced_percentage),
            ]
            + [record.wiki_project_counts.get(project, 0) for project in projects]
        )
    _print_table(headers, rows)
    for failure in engine.failures:
        print(f"[!] {failure.identifier} {failure.metric}: {failure.error}")


def cmd_article(_client, args):
    result = analyse_article(args.url)
    print(result.display_title)
    suffix = "" if result.count == 1 else "s"
    print(f"Total {result.count} reference{suffix} found")
    if 0 < result.count <= config.REFERENCE_LIST_MAX:
        for idx, ref in enumerate(result.references, start=1):
            print(f"{idx}. {reference_preview(ref)}...")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="wikiprov", description="Provenance statistics for Wikidata items.")
    parser.add_argument("--language", default=config.DEFAULT_LANGUAGE, help="Label/search language code.")
    parser.add_argument("--verbose", action="store_true", help="Log queries at DEBUG level.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Search Wikidata items by free text.")
    p_search.add_argument("term", nargs="?", default=config.DEFAULT_SEARCH)
    p_search.add_argument("--limit", type=int, default=config.SEARCH_LIMIT)
    p_search.set_defaults(func=cmd_search)

    p_item = sub.add_parser("item", help="Provenance report for one item.")
    p_item.add_argument("item", nargs="?", default=config.DEFAULT_ITEM)
    p_item.add_argument(
        "--project",
        choices=[project for project, _ in config.WIKI_PROJECTS],
        default=None,
        help="Only list the sitelinks of one Wikimedia project.",
    )
    p_item.set_defaults(func=cmd_item)

    p_compare = sub.add_parser("compare", help="Compare several items side by side.")
    p_compare.add_argument("items", nargs="?", default=config.DEFAULT_COMPARE, help="Comma-separated item ids.")
    p_compare.add_argument("--workers", type=int, default=config.COMPARE_MAX_WORKERS)
    p_compare.set_defaults(func=cmd_compare)

    p_article = sub.add_parser("article", help="Count references in a Wikipedia article.")
    p_article.add_argument("url", nargs="?", default=config.DEFAULT_ARTICLE_URL)
    p_article.set_defaults(func=cmd_article)

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    client = QueryClient()
    try:
        args.func(client, args)
    except (WikiprovError, ValueError) as exc:
        logger.error("[!] %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
