"""contourrig command line entry point.

Subcommands::

    contourrig mesh character.png -o binding.json [--preset human] [--suggest]
    contourrig render character.png binding.json -o frame.png [--motion walk --time 0.4]
    contourrig preview character.png binding.json --motion wave
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from contourrig.core.config_loader import load_json, save_json
from contourrig.core.results import MeshOk
from contourrig.core.settings import load_settings
from contourrig.coordination.rig_session import RigSession
from contourrig.loaders.image_loader import load_rgba
from contourrig.matting.client import MattingClient
from contourrig.rendering.preview import SkinningPreview, motion_pose
from contourrig.skeleton.binding import SkeletonBinding, create_binding
from contourrig.skeleton.motions import MotionType
from contourrig.skeleton.poses import AngleView, angle_view_from_name
from contourrig.skeleton.presets import PresetKind

logger = logging.getLogger(__name__)


def _load_binding(path: Path) -> SkeletonBinding:
    return SkeletonBinding.from_dict(load_json(path))


def _open_session(args) -> RigSession:
    settings = load_settings(args.settings)
    binding = _load_binding(args.binding) if getattr(args, "binding", None) else None
    return RigSession(load_rgba(args.image), binding=binding, settings=settings)


# ── Subcommands ──────────────────────────────────────────────────────

def cmd_mesh(args) -> int:
    settings = load_settings(args.settings)
    if args.binding:
        binding = _load_binding(args.binding)
    else:
        view = AngleView.parse(args.view) or angle_view_from_name(args.view)
        binding = create_binding(args.preset, view)
    session = RigSession(load_rgba(args.image), binding=binding, settings=settings)

    try:
        if args.matting:
            matted = session.apply_matting(MattingClient.from_settings(settings), args.matting)
            if not matted.ok:
                print(matted.failure.message, file=sys.stderr)
                return 1

        session.extract_contour_async()
        result = session.generate_mesh()
        if isinstance(result, MeshOk) and args.suggest:
            session.suggest_bones()
            result = session.generate_mesh()
        if not isinstance(result, MeshOk):
            print(result.message, file=sys.stderr)
            return 1

        save_json(args.output, session.binding.to_dict())
        print(f"Saved binding with {result.mesh.vertex_count} vertices, "
              f"{result.mesh.triangle_count} triangles to {args.output}")
        return 0
    finally:
        session.close()


def cmd_render(args) -> int:
    session = _open_session(args)
    try:
        if session.mesh is None:
            print("Binding has no contour mesh; run `contourrig mesh` first", file=sys.stderr)
            return 1
        if args.pose:
            for bone_id, pos in load_json(args.pose).items():
                session.move_bone(bone_id, pos)
        elif args.motion:
            view = session.binding.angle_view or AngleView.FRONT
            pose = motion_pose(session.pose, view, args.motion, args.time)
            for bone_id, pos in pose.items():
                session.move_bone(bone_id, pos)

        frame = session.render(tuple(args.size) if args.size else None)
        frame.image.save(args.output)
        if frame.skipped_triangles:
            logger.warning("%s", frame.failure.message)
        print(f"Rendered {frame.size[0]}x{frame.size[1]} frame to {args.output}")
        return 0
    finally:
        session.close()


def cmd_preview(args) -> int:
    from PySide6.QtCore import Qt
    from PySide6.QtGui import QImage, QPixmap
    from PySide6.QtWidgets import QApplication, QLabel

    from contourrig.rendering.preview_timer import PreviewTimer

    session = _open_session(args)
    try:
        if session.mesh is None:
            print("Binding has no contour mesh; run `contourrig mesh` first", file=sys.stderr)
            return 1

        app = QApplication.instance() or QApplication(sys.argv[:1])
        label = QLabel()
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setWindowTitle(f"contourrig preview - {args.motion}")

        size = tuple(args.size) if args.size else None
        preview = SkinningPreview(session.mesh, session.rgba,
                                 angle_view=session.binding.angle_view or AngleView.FRONT,
                                 canvas_size=size,
                                 overlap=session.settings.seam_overlap_px)
        timer = PreviewTimer(preview, fps=session.settings.preview_fps)

        def _show(snapshot, frame):
            img = frame.image
            qimg = QImage(img.tobytes("raw", "RGBA"), img.width, img.height,
                          QImage.Format.Format_RGBA8888)
            label.setPixmap(QPixmap.fromImage(qimg.copy()))

        timer.frame_ready.connect(_show)
        timer.start(session.pose, args.motion)
        app.aboutToQuit.connect(timer.stop)

        label.resize(*(size or (512, 512)))
        label.show()
        return app.exec()
    finally:
        session.close()


# ── CLI ──────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contourrig",
        description="Contour-mesh skeleton rigging for 2D character images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--settings", type=Path, default=None, metavar="FILE",
                        help="JSON file overriding rig settings")
    sub = parser.add_subparsers(dest="command", required=True)

    mesh = sub.add_parser("mesh", help="Generate a contour mesh and save the binding JSON")
    mesh.add_argument("image", type=Path)
    mesh.add_argument("-o", "--output", type=Path, required=True)
    mesh.add_argument("--binding", type=Path, default=None,
                      help="Existing binding JSON to re-mesh")
    mesh.add_argument("--preset", default=PresetKind.HUMAN.value,
                      choices=[k.value for k in PresetKind])
    mesh.add_argument("--view", default=AngleView.FRONT.value,
                      help="Angle view or angle name (front, front45, side, back)")
    mesh.add_argument("--suggest", action="store_true",
                      help="Fit the bones to the outline and regenerate")
    mesh.add_argument("--matting", default=None, metavar="MODEL",
                      help="Run background removal with this model first")
    mesh.set_defaults(func=cmd_mesh)

    motions = [m.value for m in MotionType]

    render = sub.add_parser("render", help="Render a posed frame to PNG")
    render.add_argument("image", type=Path)
    render.add_argument("binding", type=Path)
    render.add_argument("-o", "--output", type=Path, required=True)
    group = render.add_mutually_exclusive_group()
    group.add_argument("--pose", type=Path, default=None,
                       help="JSON object of bone id -> [x, y]")
    group.add_argument("--motion", choices=motions, default=None)
    render.add_argument("--time", type=float, default=0.0, help="Motion time in seconds")
    render.add_argument("--size", type=int, nargs=2, default=None, metavar=("W", "H"))
    render.set_defaults(func=cmd_render)

    preview = sub.add_parser("preview", help="Play a motion in a window")
    preview.add_argument("image", type=Path)
    preview.add_argument("binding", type=Path)
    preview.add_argument("--motion", choices=motions, default=MotionType.WALK.value)
    preview.add_argument("--size", type=int, nargs=2, default=None, metavar=("W", "H"))
    preview.set_defaults(func=cmd_preview)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
