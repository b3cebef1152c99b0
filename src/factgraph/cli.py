"""CLI entry point for the factgraph server and utilities."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from uuid import UUID

import uvicorn

from factgraph.config import get_settings


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    settings = get_settings()
    uvicorn.run(
        "factgraph.app:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.value.lower(),
    )


async def _init_db() -> str:
    from factgraph.service.helpers import FactTypeResolver
    from factgraph.stores.database import create_tables, get_engine, get_session_factory
    from factgraph.stores.fact_store import FactManager

    await create_tables()
    async with get_session_factory()() as session:
        fact_type = await FactTypeResolver(FactManager(session)).resolve_retraction_fact_type()
        await session.commit()
    await get_engine().dispose()
    return str(fact_type.id)


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create tables and the reserved Retraction fact type."""
    get_settings().ensure_dirs()
    type_id = asyncio.run(_init_db())
    print(f"Database ready: {get_settings().database_url}")
    print(f"  Retraction type: {type_id}")


async def _retract(args: argparse.Namespace) -> dict:
    from factgraph.api.deps import get_chroma_collection
    from factgraph.models.facts import RetractFactRequest
    from factgraph.service.dispatch import TriggerEventDispatcher, event_log_handler
    from factgraph.service.wiring import open_retraction
    from factgraph.stores.database import get_engine, get_session_factory
    from factgraph.stores.directory import Directory

    factory = get_session_factory()
    try:
        async with factory() as session:
            subject = await Directory(session).get_subject(args.subject)
            service, ctx = open_retraction(session, subject, get_chroma_collection())
            request = RetractFactRequest(
                fact=args.fact,
                organization=args.organization,
                source=args.source,
                access_mode=args.access_mode,
                acl=args.acl,
                comment=args.comment,
            )
            try:
                retraction = await service.handle(request, ctx)
                await session.commit()
            except Exception:
                await session.rollback()
                ctx.search_manager.discard_mirror()
                raise
            await ctx.search_manager.flush_mirror()
        await TriggerEventDispatcher([event_log_handler(factory)]).dispatch(ctx.triggers.drain())
    finally:
        await get_engine().dispose()
    return retraction.model_dump(mode="json", by_alias=True)


def cmd_retract(args: argparse.Namespace) -> None:
    """Retract a fact on behalf of a subject and print the Retraction fact."""
    from factgraph.exceptions import FactGraphError
    from factgraph.logging import setup_logging

    setup_logging(get_settings().log_level.value)
    try:
        result = asyncio.run(_retract(args))
    except FactGraphError as exc:
        print(f"Error: {type(exc).__name__}: {exc.message}", file=sys.stderr)
        for err in exc.validation_errors:
            print(f"  - {err.field}: {err.message_template} ({err.parameter})", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="factgraph",
        description="factgraph – retraction workflow for an append-only fact graph",
    )
    sub = parser.add_subparsers(dest="command")

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--reload", action="store_true", default=False)
    p_serve.set_defaults(func=cmd_serve)

    # init-db
    p_init = sub.add_parser("init-db", help="Create tables and system fact types")
    p_init.set_defaults(func=cmd_init_db)

    # retract
    p_ret = sub.add_parser("retract", help="Retract a fact")
    p_ret.add_argument("fact", type=UUID, help="Id of the fact to retract")
    p_ret.add_argument("--subject", type=UUID, required=True, help="Id of the subject performing the retraction")
    p_ret.add_argument("--organization", default=None, help="Organization id or name")
    p_ret.add_argument("--source", default=None, help="Source id or name")
    p_ret.add_argument("--access-mode", default=None, choices=["Public", "RoleBased", "Explicit"])
    p_ret.add_argument("--acl", type=UUID, action="append", default=[], help="Subject id to grant access (repeatable)")
    p_ret.add_argument("--comment", default=None)
    p_ret.set_defaults(func=cmd_retract)

    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
