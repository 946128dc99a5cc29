"""
Command line front end for Resume Rooster.

    python cli.py serve                      run the API server
    python cli.py upload -t work-experience cv.pdf
    python cli.py chat                       talk to the assistant
    python cli.py draft --job jd.txt --work cv.pdf
"""
import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List

import aiohttp

from client.builder import ResumeBuilder
from client.files import FileLibrary
from client.state import ClientState
from client.transport import ResumeRoosterClient
from config import FILE_TYPES, get_settings
from models.conversation import ASSISTANT_ROLE, Message
from utils.errors import ResumeRoosterError

logger = logging.getLogger(__name__)

CHAT_HELP = "Commands: /resume shows the draft, /fresh starts over, /quit exits."


@asynccontextmanager
async def open_client() -> AsyncIterator[ResumeRoosterClient]:
    settings = get_settings()
    async with aiohttp.ClientSession() as session:
        yield ResumeRoosterClient(session, settings.server_url)


def open_library(client: ResumeRoosterClient, file_type: str) -> FileLibrary:
    return FileLibrary(client, file_type, max_files=get_settings().max_files[file_type])


def print_messages(messages: List[Message]) -> None:
    for message in messages:
        print(f"\n[{message.role}]\n{message.text}")


async def list_files(args: argparse.Namespace) -> None:
    async with open_client() as client:
        files = await client.list_files(args.type)
    if not files:
        print("No documents uploaded yet")
    for f in files:
        print(f"{f.fileId}\t{f.fileType}\t{f.displayName}")


async def upload_files(args: argparse.Namespace) -> None:
    async with open_client() as client:
        library = open_library(client, args.type)
        await library.refresh()
        files = await library.upload([Path(p).expanduser() for p in args.paths])
    if library.error:
        raise SystemExit(f"Upload failed: {library.error}")
    print(f"{len(files)} {args.type} document(s) on the server")


async def paste_text(args: argparse.Namespace) -> None:
    text = args.text if args.text is not None else sys.stdin.read()
    async with open_client() as client:
        library = open_library(client, args.type)
        await library.refresh()
        await library.submit_text(text)
    if library.error:
        raise SystemExit(f"Submit failed: {library.error}")
    print(f"Saved pasted {args.type}")


async def delete_file(args: argparse.Namespace) -> None:
    async with open_client() as client:
        await client.delete_file(args.file_id)
    print(f"Deleted {args.file_id}")


async def cleanup(args: argparse.Namespace) -> None:
    async with open_client() as client:
        result = await client.delete_all_files()
    print(f"Deleted {result.deletedVectorStoreFiles} vector store files and {result.deletedFiles} files")


async def missing_documents(client: ResumeRoosterClient) -> List[str]:
    """Document types with nothing uploaded yet"""
    missing = []
    for file_type in FILE_TYPES:
        if not await client.list_files(file_type):
            missing.append(file_type)
    return missing


async def require_documents(client: ResumeRoosterClient) -> None:
    missing = await missing_documents(client)
    if missing:
        names = " and ".join(t.replace("-", " ") for t in missing)
        raise SystemExit(
            f"Upload at least one {names} document before creating a resume "
            f"(python cli.py upload -t {missing[0]} <file>)"
        )


async def chat(args: argparse.Namespace) -> None:
    state = ClientState(get_settings().state_path)
    async with open_client() as client:
        builder = ResumeBuilder(client, state)
        builder.tools.on_resume_updated = lambda artifact: print("\n(resume draft updated)")

        await require_documents(client)
        await builder.open()
        print_messages(builder.session.messages)
        print(f"\n{CHAT_HELP}")

        while True:
            if not builder.session.input_enabled:
                print("\nThe assistant did not finish its turn. Check the server logs or use /fresh.")

            text = (await asyncio.to_thread(input, "\n> ")).strip()
            if text == "/quit":
                break
            if text == "/resume":
                print(builder.resume or "No resume yet.")
                continue
            if text == "/fresh":
                builder.start_fresh()
                await require_documents(client)
                await builder.open()
                print_messages(builder.session.messages)
                continue
            if not text or not builder.session.input_enabled:
                continue

            seen = len(builder.session.messages)
            await builder.send(text)
            print_messages([m for m in builder.session.messages[seen:] if m.role == ASSISTANT_ROLE])


async def reset(args: argparse.Namespace) -> None:
    ClientState(get_settings().state_path).clear()
    print("Cleared saved thread and resume draft")


async def draft(args: argparse.Namespace) -> None:
    from openai import AsyncOpenAI
    from services.direct_completion import draft_resume

    settings = get_settings()
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    try:
        content = await draft_resume(client, args.job, args.work, model=settings.model)
    finally:
        await client.close()

    if args.output:
        Path(args.output).write_text(content, encoding="utf-8")
        print(f"Draft written to {args.output}")
    else:
        print(content)


def serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("main:app", host=args.host, port=args.port, reload=args.reload)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a resume with a hosted AI assistant.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("serve", help="Run the API server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(handler=serve)

    p = commands.add_parser("files", help="List uploaded documents")
    p.add_argument("-t", "--type", choices=FILE_TYPES)
    p.set_defaults(handler=list_files)

    p = commands.add_parser("upload", help="Upload documents")
    p.add_argument("-t", "--type", choices=FILE_TYPES, required=True)
    p.add_argument("paths", nargs="+")
    p.set_defaults(handler=upload_files)

    p = commands.add_parser("paste", help="Save pasted text as a document (reads stdin without --text)")
    p.add_argument("-t", "--type", choices=FILE_TYPES, required=True)
    p.add_argument("--text")
    p.set_defaults(handler=paste_text)

    p = commands.add_parser("delete", help="Delete one document")
    p.add_argument("file_id")
    p.set_defaults(handler=delete_file)

    p = commands.add_parser("cleanup", help="Delete every uploaded document")
    p.set_defaults(handler=cleanup)

    p = commands.add_parser("chat", help="Start or resume the resume conversation")
    p.set_defaults(handler=chat)

    p = commands.add_parser("reset", help="Forget the saved thread and resume draft")
    p.set_defaults(handler=reset)

    p = commands.add_parser("draft", help="Draft a resume with one direct completion")
    p.add_argument("--job", required=True, help="Job description file")
    p.add_argument("--work", nargs="+", required=True, help="Work experience files")
    p.add_argument("-o", "--output", help="Write the draft to this file")
    p.set_defaults(handler=draft)

    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.handler is serve:
        serve(args)
        return

    try:
        asyncio.run(args.handler(args))
    except ResumeRoosterError as e:
        raise SystemExit(f"Error: {e.message}")
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
