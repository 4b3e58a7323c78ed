import argparse
import json
import logging
import os
import sys
import uuid as _uuid

from config.settings import get_settings
from db import schema
from db.connection import get_connection
from db.repos.leads_repo import LeadsRepo
from db.repos.sessions_repo import SessionsRepo
from models import SearchFilter
from pipelines.enrich_contact import enrich_contact
from pipelines.fetch_profile import fetch_profiles
from pipelines.import_contacts import import_contacts
from services import session_endpoints
from services.domain_utils import normalize_linkedin_profile_url
from services.errors import EnrichmentError
from services.reporting import print_summary
from services.session_manager import SessionManager
from utils.logging_setup import init_logging


logger = logging.getLogger("cli")


def _open_db(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    return conn


def _contact_json(lead_id, contact):
    out = {"id": lead_id}
    out.update(contact.model_dump(exclude_none=True))
    return out


def cmd_bootstrap(args):
    _open_db(args)
    print("Schema ready")


def cmd_session(args):
    conn = _open_db(args)
    manager = SessionManager(SessionsRepo(conn))
    if args.action == "login":
        code, body = session_endpoints.login(manager, args.key, cookie=args.cookie)
    elif args.action == "status":
        code, body = session_endpoints.status(manager, args.key)
    else:
        code, body = session_endpoints.logout(manager, args.key)
    print(json.dumps(body, indent=2, ensure_ascii=False))
    if code != 200:
        sys.exit(1)


def _search_filter(args) -> SearchFilter:
    return SearchFilter(
        person_titles=args.title,
        person_seniorities=args.seniority,
        person_locations=args.location,
        organization_names=args.company,
        organization_locations=args.company_location,
        organization_industry_tag_ids=args.industry_tag,
        organization_num_employees_ranges=args.employees,
        page=args.page,
        per_page=args.per_page,
    )


def cmd_run(args):
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex
    repo = LeadsRepo(_open_db(args)) if args.write_db else None

    if args.pipeline == "import-contacts":
        ctx = import_contacts(_search_filter(args), repo=repo, enrich_emails=args.enrich_emails)
        print_summary("Contact import - summary", ctx.meta)
    elif args.pipeline == "enrich-contact":
        if not args.profile or len(args.profile) != 1:
            raise SystemExit("enrich-contact needs exactly one --profile")
        ctx = enrich_contact(args.profile[0], repo=repo)
        print_summary("Contact enrichment - summary", ctx.meta)
    else:
        if not args.profile:
            raise SystemExit("fetch-profile needs at least one --profile")
        ctx = fetch_profiles(args.profile, repo=repo, enrich_emails=args.enrich_emails)
        print_summary("Profile fetch - summary", ctx.meta)

    if args.json:
        print(json.dumps([c.model_dump(exclude_none=True) for c in ctx.contacts], indent=2, ensure_ascii=False))


def cmd_report_lead(args):
    repo = LeadsRepo(_open_db(args))
    found = None
    if args.profile:
        profile = normalize_linkedin_profile_url(args.profile)
        if not profile:
            print("Invalid LinkedIn profile URL")
            return
        found = repo.find_by_linkedin_url(profile)
    elif args.email:
        found = repo.find_by_email(args.email)
    if not found:
        print("No record found")
        return
    print(json.dumps(_contact_json(*found), indent=2, ensure_ascii=False))


def cmd_report_recent(args):
    repo = LeadsRepo(_open_db(args))
    rows = repo.list_recent(limit=args.limit, status=args.status)
    print(json.dumps([_contact_json(lead_id, c) for lead_id, c in rows], indent=2, ensure_ascii=False))


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Lead enrichment CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create tables and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_ses = sub.add_parser("session", help="Manage the LinkedIn automation session")
    p_ses.add_argument("action", choices=["login", "status", "logout"])
    p_ses.add_argument("--key", default=settings.default_session_key, help="Session key (default from settings)")
    p_ses.add_argument("--cookie", default=None, help="Store this li_at cookie instead of opening a browser")
    p_ses.set_defaults(func=cmd_session)

    p_run = sub.add_parser("run", help="Run a named pipeline")
    p_run.add_argument("pipeline", choices=["import-contacts", "enrich-contact", "fetch-profile"], help="Pipeline to run")
    # Bulk search filters (repeatable)
    p_run.add_argument("--title", action="append", help="Person title filter")
    p_run.add_argument("--seniority", action="append", help="Person seniority filter")
    p_run.add_argument("--location", action="append", help="Person location filter")
    p_run.add_argument("--company", action="append", help="Organization name filter")
    p_run.add_argument("--company-location", action="append", help="Organization location filter")
    p_run.add_argument("--industry-tag", action="append", help="Organization industry tag id")
    p_run.add_argument("--employees", action="append", help="Employee range, e.g. 11,50")
    p_run.add_argument("--page", type=int, default=1)
    p_run.add_argument("--per-page", type=int, default=100)
    # Profile flags
    p_run.add_argument("--profile", "-p", action="append", help="LinkedIn profile URL (repeatable)")
    p_run.add_argument("--enrich-emails", action="store_true", help="Look up missing emails through async enrichment")
    p_run.add_argument("--write-db", action="store_true", help="Merge results into the leads table")
    p_run.add_argument("--json", action="store_true", help="Print the canonical contacts as JSON")
    p_run.set_defaults(func=cmd_run)

    p_rl = sub.add_parser("report-lead", help="Show one stored lead")
    g = p_rl.add_mutually_exclusive_group(required=True)
    g.add_argument("--profile", help="LinkedIn profile URL")
    g.add_argument("--email", help="Email address")
    p_rl.set_defaults(func=cmd_report_lead)

    p_rr = sub.add_parser("report-recent", help="List recently stored leads")
    p_rr.add_argument("--limit", type=int, default=5)
    p_rr.add_argument("--status", default=None, help="Filter by lead status")
    p_rr.set_defaults(func=cmd_report_recent)

    args = parser.parse_args()
    try:
        args.func(args)
    except EnrichmentError as e:
        logger.error("Command failed", extra={"step": args.cmd, "status": "error", "error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
