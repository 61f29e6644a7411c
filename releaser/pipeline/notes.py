from __future__ import annotations

from releaser.pipeline.aggregate import CHECKSUMS_FILE_NAME, ArtifactSet, asset_name
from releaser.pipeline.manifest import Manifest
from releaser.pipeline.targets import PlatformFamily

_FAMILY_TITLES = {
    PlatformFamily.DEBIAN: "Debian / Ubuntu (.deb)",
    PlatformFamily.ARCH: "Arch Linux (PKGBUILD)",
    PlatformFamily.WINDOWS: "Windows",
    PlatformFamily.MACOS: "macOS",
    PlatformFamily.ARCHIVE: "Archive (.tar.gz)",
}


def release_title(manifest: Manifest) -> str:
    return f"{manifest.name} {manifest.tag}"


def render_release_notes(manifest: Manifest, artifact_set: ArtifactSet) -> str:
    """Release body listing every asset; the host appends its generated changelog."""
    lines: list[str] = []
    lines.append(f"# {release_title(manifest)}")
    lines.append("")
    lines.append(manifest.description)
    lines.append("")
    lines.append("## Downloads")
    lines.append("")
    lines.append("| Platform | Architecture | File |")
    lines.append("|----------|--------------|------|")

    order = list(PlatformFamily)
    for key in sorted(artifact_set, key=lambda k: (order.index(k[0]), k[1])):
        artifact = artifact_set[key]
        title = _FAMILY_TITLES[artifact.family]
        lines.append(f"| {title} | {artifact.arch} | `{asset_name(artifact, manifest)}` |")

    lines.append("")
    lines.append(f"Checksums: `{CHECKSUMS_FILE_NAME}` (`sha256sum -c {CHECKSUMS_FILE_NAME}`)")
    return "\n".join(lines).rstrip() + "\n"
