#!/usr/bin/env python3
"""
diddoc CLI

Usage:
    diddoc [--format json|yaml|text] [--config FILE] <command> [options]

Commands:
    inspect     Summarize a DID document
    normalize   Decode and re-encode a DID document
    methods     Resolve the verification methods for a proof purpose
    key         Look up one verification method by id
    digest      SHA-256 of the canonical JSON bytes
    config      Show or validate configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import Enum
from typing import Any, List, Optional

from diddoc import __version__
from diddoc.config import ConfigError
from diddoc.errors import DidDocError, ErrorKind

logger = logging.getLogger(__name__)


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"
    TEXT = "text"


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.JSON:
        return json.dumps(data, indent=2, ensure_ascii=False, default=str)
    elif fmt == OutputFormat.YAML:
        import yaml
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    if isinstance(data, dict):
        return "\n".join(f"{k}: {v}" for k, v in data.items())
    return str(data)


class DidDocCLI:
    """Main CLI application."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="diddoc",
            description="Inspect and resolve DID documents",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"diddoc {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=[f.value for f in OutputFormat],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument("--config", "-c", help="YAML configuration file")
        self.parser.add_argument("--log-level", help="Override logging.level")
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error messages",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        inspect = self.subparsers.add_parser("inspect", help="Summarize a DID document")
        inspect.add_argument("file", help="JSON or YAML document")

        normalize = self.subparsers.add_parser("normalize", help="Decode and re-encode a document")
        normalize.add_argument("file", help="JSON or YAML document")
        normalize.add_argument("--indent", type=int, help="JSON indent (0 = compact)")

        methods = self.subparsers.add_parser("methods", help="Resolve verification methods")
        methods.add_argument("file", help="JSON or YAML document")
        methods.add_argument("--purpose", "-p", default="authentication", help="Proof purpose")

        key = self.subparsers.add_parser("key", help="Look up a verification method by id")
        key.add_argument("file", help="JSON or YAML document")
        key.add_argument("--id", "-i", required=True, dest="key_id", help="Verification method id")

        digest = self.subparsers.add_parser("digest", help="SHA-256 of canonical bytes")
        digest.add_argument("file", help="JSON or YAML document")

        config = self.subparsers.add_parser("config", help="Configuration management")
        config_sub = config.add_subparsers(dest="subcommand")
        config_sub.add_parser("show", help="Show all configuration")
        config_sub.add_parser("validate", help="Validate configuration")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            self._setup(parsed)
            fmt = OutputFormat(parsed.format)
            result = self._dispatch(parsed)
            if result is not None:
                print(format_output(result, fmt))
            return 0

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except DidDocError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 2 if e.kind == ErrorKind.NOT_FOUND else 1

        except ConfigError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

        except (OSError, ValueError) as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

    def _setup(self, args: argparse.Namespace) -> None:
        from diddoc.config import get_config_manager
        from diddoc.observability import configure_logging

        mgr = get_config_manager()
        try:
            if args.config:
                mgr.load_from_file(args.config)
            if args.log_level:
                mgr.set("logging.level", args.log_level)
            level = str(mgr.get("logging.level"))
            structured = bool(mgr.get("logging.structured"))
        except ConfigError as e:
            raise CLIError(str(e)) from e

        configure_logging(level=level, structured=structured)

    def _dispatch(self, args: argparse.Namespace) -> Any:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}".strip())

        return handler(args)

    def _load(self, path: str):
        from diddoc.core import load_document_file
        from diddoc.document import Document

        logger.debug("loading %s", path)
        return Document.from_dict(load_document_file(path))

    # Document handlers
    def _handle_inspect(self, args: argparse.Namespace) -> Any:
        from diddoc.resolver import resolve_all

        doc = self._load(args.file)
        resolved = resolve_all(doc)
        return {
            "id": doc.subject(),
            "context": doc.context() or [],
            "controller": doc.controller() or [],
            "alsoKnownAs": doc.also_known_as() or [],
            "verificationMethods": len(doc.verification_method() or []),
            "services": len(doc.services() or []),
            "relationships": {k: len(v) for k, v in resolved.items()},
            "extensions": doc.extension_keys(),
        }

    def _handle_normalize(self, args: argparse.Namespace) -> Any:
        doc = self._load(args.file)
        print(doc.dumps(indent=args.indent))
        return None

    def _handle_methods(self, args: argparse.Namespace) -> Any:
        from diddoc.document import encode_value

        doc = self._load(args.file)
        methods = doc.verification_methods_for(args.purpose)
        return {"purpose": args.purpose, "verificationMethods": encode_value(methods)}

    def _handle_key(self, args: argparse.Namespace) -> Any:
        from diddoc.document import encode_value

        doc = self._load(args.file)
        return encode_value(doc.verification_method_by_id(args.key_id))

    def _handle_digest(self, args: argparse.Namespace) -> Any:
        doc = self._load(args.file)
        return {"id": doc.subject(), "digest_sha256": doc.digest()}

    # Config handlers
    def _handle_config_show(self, args: argparse.Namespace) -> Any:
        from diddoc.config import get_config_manager

        return get_config_manager().config.to_dict()

    def _handle_config_validate(self, args: argparse.Namespace) -> Any:
        from diddoc.config import get_config_manager

        errors = get_config_manager().validate()
        return {"valid": len(errors) == 0, "errors": errors}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    cli = DidDocCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
