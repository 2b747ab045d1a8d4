from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Sequence

import httpx

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from campus_paths.controller import PathViewController  # noqa: E402
from campus_paths.directory import BuildingDirectory  # noqa: E402
from campus_paths.path_client import PathQueryClient  # noqa: E402
from campus_paths.renderer import MapCanvasRenderer  # noqa: E402
from campus_paths.settings import settings  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find the walking path between two campus buildings and render it onto the map."
    )
    parser.add_argument("--start", required=True, help="Short name of the starting building")
    parser.add_argument("--end", required=True, help="Short name of the destination building")
    parser.add_argument("--base-url", default=None, help="Pathfinding server (default: settings)")
    parser.add_argument("--map-image", default=None, help="Campus map image (default: settings)")
    parser.add_argument("--out", default=None, help="Output image path")
    parser.add_argument("--skip-directory", action="store_true", help="Do not fetch /get-map first")
    return parser


async def execute_render(
    *,
    start: str,
    end: str,
    base_url: str | None = None,
    map_image: str | None = None,
    out: str | None = None,
    skip_directory: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    base = (base_url or settings.base_url).rstrip("/")
    renderer = MapCanvasRenderer()

    async with PathQueryClient(base_url=base, transport=transport) as client:
        directory = None
        if not skip_directory:
            directory = BuildingDirectory(base_url=base, client=client.client)

        controller = PathViewController(client=client, renderer=renderer, directory=directory)
        await controller.load_directory()
        await renderer.load_background(map_image or settings.map_image_path)

        controller.select_start(start)
        controller.select_end(end)
        points = await controller.find_path()

    out_file = Path(out) if out else Path(settings.out_dir) / f"path_{start}_{end}.png"
    renderer.save(out_file)

    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "start": start,
        "end": end,
        "start_name": directory.display_name(start) if directory and directory.contains(start) else None,
        "end_name": directory.display_name(end) if directory and directory.contains(end) else None,
        "points": [list(p.as_tuple()) for p in (points or ())],
        "notices": list(controller.notices),
        "image_file": str(out_file),
        "image_size": list(renderer.size),
    }


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    try:
        summary = asyncio.run(
            execute_render(
                start=args.start,
                end=args.end,
                base_url=args.base_url,
                map_image=args.map_image,
                out=args.out,
                skip_directory=args.skip_directory,
            )
        )
    except OSError as e:
        # Missing or undecodable map image (PIL.UnidentifiedImageError is an OSError).
        print(f"Could not load map image: {e}", file=sys.stderr)
        return 1
    print(json.dumps(summary, indent=2))
    return 1 if summary["notices"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
