import argparse
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional

from .env import get_config, load_env

from . import __version__
from .auth import AuthStore
from .logger import get_logger
from .repository import Repository, RepositoryError, open_repository
from .schema import safe_http_url, validate_posting
from .search import SORT_KEYS, featured_view, resolve_query_state, search_jobs
from .settings import THEMES, SettingsStore
from .stats import compute_board_stats
from .storage import JobStore, utc_now
from .submissions import SubmissionStore

POSTING_FIELDS = [
    "title",
    "category",
    "description",
    "location",
    "contact",
    "posterType",
    "price",
    "currency",
    "isOnline",
    "sampleLink",
    "portfolioLink",
    "media",
    "mediaType",
]
CARD_DESCRIPTION_CHARS = 100


class Board:
    """All stores of one repository, wired together."""

    def __init__(self, repository: Repository, clock=utc_now):
        self.repository = repository
        self.jobs = JobStore(repository, clock=clock)
        self.settings = SettingsStore(repository)
        self.auth = AuthStore(repository, clock=clock)
        self.submissions = SubmissionStore(repository, clock=clock)


def apply_posting_defaults(data: Dict[str, Any], settings: Dict[str, Any]) -> Dict[str, Any]:
    """Fill blank posting fields from the user's saved posting defaults."""
    posting = dict(data)
    defaults = {
        "posterType": settings.get("defaultPosterType"),
        "category": settings.get("defaultCategory"),
        "currency": settings.get("defaultCurrency"),
        "location": settings.get("defaultLocation"),
    }
    for field, value in defaults.items():
        if value and not str(posting.get(field) or "").strip():
            posting[field] = value
    if "isOnline" not in posting and settings.get("defaultOnline"):
        posting["isOnline"] = True
    return posting


def _clean_posting(posting: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for field in POSTING_FIELDS:
        value = posting.get(field)
        record[field] = value.strip() if isinstance(value, str) else value
    price = float(record["price"])
    record["price"] = int(price) if price.is_integer() else price
    record["currency"] = record.get("currency") or "USD"
    record["isOnline"] = record.get("isOnline") is True
    if not record["isOnline"]:
        record["sampleLink"] = ""
    for field in ("sampleLink", "portfolioLink", "media", "mediaType"):
        record[field] = record.get(field) or ""
    return record


def post_job(board: Board, data: Dict[str, Any]) -> Dict[str, Any]:
    user = board.auth.get_current_user()
    if user is None:
        return {"status": "not-signed-in"}

    posting = apply_posting_defaults(data, board.settings.get_settings())
    errors = validate_posting(posting)
    if errors:
        return {"status": "validation_error", "errors": errors}

    record = _clean_posting(posting)
    record.update({
        "posterId": user.get("id"),
        "postedBy": user.get("email"),
        "postedByName": user.get("fullname"),
    })
    status = board.jobs.save_new(record)
    if status != "created":
        return {"status": status}
    return {"status": "created", "job": board.jobs.load_all()[0]}


def _budget_line(job: Dict[str, Any]) -> str:
    price = job.get("price")
    if isinstance(price, bool) or price is None or price == "":
        return ""
    try:
        amount = float(price)
    except (TypeError, ValueError, OverflowError):
        return ""
    if not math.isfinite(amount):
        return ""
    return f"Budget: {job.get('currency') or 'USD'} {price}"


def _print_job_card(job: Dict[str, Any]) -> None:
    description = str(job.get("description") or "")
    if len(description) > CARD_DESCRIPTION_CHARS:
        description = description[:CARD_DESCRIPTION_CHARS] + "..."
    print(f"[{job.get('id')}] {job.get('title') or 'Untitled'}")
    print(f"  Category: {job.get('category') or 'Other'}")
    print(f"  Location: {job.get('location') or 'Remote'}")
    print(f"  {description}")
    budget = _budget_line(job)
    if budget:
        print(f"  {budget}")
    sample_url = safe_http_url(job.get("sampleLink"))
    if job.get("isOnline") and sample_url:
        print(f"  Sample: {sample_url}")
    if job.get("media"):
        kind = "video" if "video" in str(job.get("mediaType") or "") else "image"
        print(f"  [{kind} attached]")
    print(f"  Posted by: {job.get('posterType') or 'Poster'}")
    print()


def print_job_list(heading: str, jobs: List[Dict[str, Any]]) -> None:
    if not jobs:
        print(f"{heading}: 0 jobs found")
        print("  No jobs match your filters.")
        return
    print(f"{heading}: {len(jobs)} jobs found\n")
    for job in jobs:
        _print_job_card(job)


def _open_board(args: argparse.Namespace) -> Board:
    config = get_config()
    try:
        return Board(open_repository(args.store, config.quota_chars))
    except RepositoryError as e:
        raise SystemExit(str(e))


def _read_input(path: str) -> Any:
    input_path = Path(path)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Input is not valid JSON: {e}")


def _fail_validation(errors: List[str]) -> None:
    print("Invalid:")
    for e in errors:
        print(f" - {e}")
    raise SystemExit(2)


def cmd_list(args: argparse.Namespace) -> None:
    board = _open_board(args)
    state = resolve_query_state(
        url_query=args.url_query,
        controls={"search_text": args.search, "category": args.category, "sort_key": args.sort},
        settings=board.settings.get_settings(),
    )
    if args.clear:
        state = state.cleared()
    results = search_jobs(board.jobs, state)
    if state.has_filters:
        print(f"Filters: search={state.search_text!r} category={state.category!r} (use --clear to reset)")
    print(f"Sorted by: {state.sort_key}\n")
    if args.featured:
        print_job_list("Featured", featured_view(results))
        return
    print_job_list("Jobs", results)


def cmd_show(args: argparse.Namespace) -> None:
    board = _open_board(args)
    job = board.jobs.get_by_id(args.id)
    if job is None:
        raise SystemExit(f"Job not found: {args.id}")
    print(json.dumps(job, indent=2, ensure_ascii=False))


def cmd_post(args: argparse.Namespace) -> None:
    data = _read_input(args.input)
    if not isinstance(data, dict):
        raise SystemExit("Input must be a JSON object")
    board = _open_board(args)
    outcome = post_job(board, data)
    status = outcome["status"]
    if status == "validation_error":
        _fail_validation(outcome["errors"])
    if status == "not-signed-in":
        raise SystemExit("Please sign in to post a job: afgjobs login --email <email>")
    if status == "quota-exceeded":
        raise SystemExit("Storage is full. Please use a smaller media file or remove old posts.")
    if status == "storage-error":
        raise SystemExit("Could not save the job. Please try again.")
    print(f"Job: {outcome['job']['id']}")
    print(f"Status: {status}")


def cmd_validate(args: argparse.Namespace) -> None:
    posting = _read_input(args.input)
    if not isinstance(posting, dict):
        raise SystemExit("Input must be a JSON object")
    errors = validate_posting(posting)
    if errors:
        _fail_validation(errors)
    print("Valid")


def cmd_delete(args: argparse.Namespace) -> None:
    board = _open_board(args)
    result = board.jobs.delete_by_id(args.id, board.auth.get_current_user())
    if result["ok"]:
        print(f"Deleted job {args.id}")
        return
    reason = result["reason"]
    if reason == "not-found":
        raise SystemExit(f"Job not found: {args.id}")
    if reason == "not-owner":
        raise SystemExit("You can only delete jobs you posted.")
    raise SystemExit(f"Could not delete job {args.id}. Please try again.")


def cmd_register(args: argparse.Namespace) -> None:
    board = _open_board(args)
    outcome = board.auth.register_user(args.fullname, args.email)
    status = outcome["status"]
    if status == "validation_error":
        _fail_validation(outcome["errors"])
    if status == "already-registered":
        raise SystemExit(f"An account already exists for {args.email}")
    if status == "storage_error":
        raise SystemExit("Could not save your account. Please try again.")
    print(f"Registered {outcome['user']['fullname']} <{outcome['user']['email']}>")


def cmd_login(args: argparse.Namespace) -> None:
    board = _open_board(args)
    try:
        user = board.auth.sign_in(args.email)
    except RepositoryError as e:
        raise SystemExit(f"Could not sign in: {e}")
    if user is None:
        raise SystemExit(f"No account for {args.email}. Use 'afgjobs register' first.")
    print(f"Welcome, {user.get('fullname') or 'User'}")


def cmd_logout(args: argparse.Namespace) -> None:
    board = _open_board(args)
    board.auth.sign_out()
    print("Signed out.")


def cmd_whoami(args: argparse.Namespace) -> None:
    board = _open_board(args)
    user = board.auth.get_current_user()
    if user is None:
        print("Not signed in.")
        return
    print(f"{user.get('fullname') or 'User'} <{user.get('email')}> (id {user.get('id')})")


def _parse_setting(assignment: str) -> Dict[str, Any]:
    if "=" not in assignment:
        raise SystemExit(f"Expected KEY=VALUE, got {assignment!r}")
    key, raw = assignment.split("=", 1)
    key = key.strip()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    if key.startswith("notifications."):
        return {"notifications": {key.split(".", 1)[1]: value}}
    return {key: value}


def cmd_settings(args: argparse.Namespace) -> None:
    board = _open_board(args)
    if args.set:
        changes: Dict[str, Any] = {}
        for assignment in args.set:
            change = _parse_setting(assignment)
            if "notifications" in change and "notifications" in changes:
                changes["notifications"].update(change["notifications"])
            else:
                changes.update(change)
        try:
            settings = board.settings.update_settings(changes)
        except RepositoryError as e:
            raise SystemExit(f"Could not save settings: {e}")
    else:
        settings = board.settings.get_settings()
    print(json.dumps(settings, indent=2, ensure_ascii=False))


def cmd_theme(args: argparse.Namespace) -> None:
    board = _open_board(args)
    if args.theme:
        try:
            board.settings.set_theme(args.theme)
        except RepositoryError as e:
            raise SystemExit(f"Could not save theme: {e}")
    print(board.settings.get_theme())


def _report_submission(outcome: Dict[str, Any], success: str) -> None:
    status = outcome["status"]
    if status == "validation_error":
        _fail_validation(outcome["errors"])
    if status == "storage_error":
        raise SystemExit("Could not save. Please try again.")
    print(success)


def cmd_feedback(args: argparse.Namespace) -> None:
    board = _open_board(args)
    outcome = board.submissions.submit_feedback(args.name, args.email, args.message)
    _report_submission(outcome, "Thank you for your feedback.")


def cmd_subscribe(args: argparse.Namespace) -> None:
    board = _open_board(args)
    outcome = board.submissions.subscribe_newsletter(args.email)
    _report_submission(outcome, "You are subscribed. Thanks for joining.")


def cmd_seeker(args: argparse.Namespace) -> None:
    board = _open_board(args)
    outcome = board.submissions.post_seeker_profile(args.name, args.location, args.skills, args.contact)
    _report_submission(outcome, "Your job-seeker profile was posted successfully.")


def cmd_stats(args: argparse.Namespace) -> None:
    board = _open_board(args)
    stats = compute_board_stats(board.jobs.load_all(), board.auth.get_users())
    print(f"Jobs posted: {stats['jobs_posted']}")
    print(f"Freelancers active: {stats['freelancers_active']}")
    print(f"Categories: {stats['categories']}")
    if args.metrics:
        get_logger().log_metrics_summary()


def build_parser(default_store: str) -> argparse.ArgumentParser:
    store_parent = argparse.ArgumentParser(add_help=False)
    store_parent.add_argument("--store", default=default_store, help=f"Store location: .json file, SQLite path or :memory: (default: {default_store})")

    parser = argparse.ArgumentParser(prog="afgjobs", description="AfgJobs local job board")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    lst = subparsers.add_parser("list", parents=[store_parent], help="Search, filter and sort jobs")
    lst.add_argument("--search", help="Text to find in title, description or location")
    lst.add_argument("--category", help="Exact category, or 'All'")
    lst.add_argument("--sort", choices=SORT_KEYS, help="Sort order (default: saved setting, else newest)")
    lst.add_argument("--url-query", help="Navigation query string, e.g. '?search=bakery'; its search value wins")
    lst.add_argument("--featured", action="store_true", help="Only show the featured (top 3) jobs")
    lst.add_argument("--clear", action="store_true", help="Ignore all filters and saved defaults")
    lst.set_defaults(func=cmd_list)

    shw = subparsers.add_parser("show", parents=[store_parent], help="Show one job in full")
    shw.add_argument("--id", required=True, help="Job id")
    shw.set_defaults(func=cmd_show)

    pst = subparsers.add_parser("post", parents=[store_parent], help="Post a job from a JSON file as the signed-in user")
    pst.add_argument("--input", required=True, help="Path to posting JSON input")
    pst.set_defaults(func=cmd_post)

    val = subparsers.add_parser("validate", help="Validate a posting JSON file")
    val.add_argument("--input", required=True, help="Path to posting JSON input")
    val.set_defaults(func=cmd_validate)

    dele = subparsers.add_parser("delete", parents=[store_parent], help="Delete a job you posted")
    dele.add_argument("--id", required=True, help="Job id")
    dele.set_defaults(func=cmd_delete)

    reg = subparsers.add_parser("register", parents=[store_parent], help="Create a local account")
    reg.add_argument("--fullname", required=True, help="Display name")
    reg.add_argument("--email", required=True, help="Email address")
    reg.set_defaults(func=cmd_register)

    lgn = subparsers.add_parser("login", parents=[store_parent], help="Sign in as a registered user")
    lgn.add_argument("--email", required=True, help="Email address")
    lgn.set_defaults(func=cmd_login)

    lgo = subparsers.add_parser("logout", parents=[store_parent], help="Sign out")
    lgo.set_defaults(func=cmd_logout)

    who = subparsers.add_parser("whoami", parents=[store_parent], help="Show the signed-in user")
    who.set_defaults(func=cmd_whoami)

    stg = subparsers.add_parser("settings", parents=[store_parent], help="Show or change settings")
    stg.add_argument("--set", action="append", metavar="KEY=VALUE", help="Change a setting (JSON values; notifications.<name>=true)")
    stg.set_defaults(func=cmd_settings)

    thm = subparsers.add_parser("theme", parents=[store_parent], help="Show or change the theme")
    thm.add_argument("theme", nargs="?", choices=THEMES, help="New theme")
    thm.set_defaults(func=cmd_theme)

    fbk = subparsers.add_parser("feedback", parents=[store_parent], help="Send feedback")
    fbk.add_argument("--message", required=True, help="Feedback text")
    fbk.add_argument("--name", default="", help="Your name (default: Anonymous)")
    fbk.add_argument("--email", default="", help="Optional reply address")
    fbk.set_defaults(func=cmd_feedback)

    sub = subparsers.add_parser("subscribe", parents=[store_parent], help="Subscribe to the newsletter")
    sub.add_argument("--email", required=True, help="Email address")
    sub.set_defaults(func=cmd_subscribe)

    skr = subparsers.add_parser("seeker", parents=[store_parent], help="Post a job-seeker profile")
    skr.add_argument("--name", required=True)
    skr.add_argument("--location", required=True)
    skr.add_argument("--skills", required=True, help="At least 20 characters about your skills")
    skr.add_argument("--contact", required=True, help="Email or phone number")
    skr.set_defaults(func=cmd_seeker)

    sts = subparsers.add_parser("stats", parents=[store_parent], help="Board statistics")
    sts.add_argument("--metrics", action="store_true", help="Also log storage metrics for this run")
    sts.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (AFGJOBS_STORE, AFGJOBS_LOG_LEVEL, etc.)
    load_env()
    config = get_config()
    get_logger(level=config.log_level, log_dir=config.log_dir, enable_file=config.log_to_file)

    parser = build_parser(config.store)
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
