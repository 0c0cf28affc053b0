"""Bundle builder: compiles one isolated virtual entry module with vite."""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from bundlesize.build.measure import VIRTUAL_ENTRY_NAME
from bundlesize.errors import BuildError
from bundlesize.models import EntryDescriptor, ImportSpec, InlineCode, Manifest, parse_manifest
from bundlesize.utils.files import safe_dirname

LOGGER = logging.getLogger(__name__)

MANIFEST_PATH = Path(".vite") / "manifest.json"
DEFAULT_BUILD_TIMEOUT = 600.0

_CONFIG_TEMPLATE = """\
import {{ transformWithEsbuild }} from 'vite';
{visualizer_import}
const entryContent = {entry_content};
const externals = {externals};

export default {{
  root: {root_dir},
  logLevel: {log_level},
  define: {{ 'process.env.NODE_ENV': JSON.stringify('production') }},
  esbuild: {esbuild},
  build: {{
    write: true,
    minify: {minify},
    outDir: {out_dir},
    emptyOutDir: true,
    manifest: true,
    reportCompressedSize: false,
    target: 'esnext',
    rollupOptions: {{
      input: '/index.tsx',
      external: (id) => externals.some((ext) => id === ext || id.startsWith(`${{ext}}/`)),
      plugins: [{visualizer_plugin}],
    }},
  }},
  plugins: [
    {{
      name: 'virtual-entry',
      resolveId(id) {{
        if (id === '/index.tsx') return '\\0virtual:index.tsx';
        if (id === '/entry.tsx') return '\\0virtual:entry.tsx';
        return null;
      }},
      load(id) {{
        if (id === '\\0virtual:index.tsx') {{
          return transformWithEsbuild("import('/entry.tsx').then(console.log)", id);
        }}
        if (id === '\\0virtual:entry.tsx') {{
          return transformWithEsbuild(entryContent, id);
        }}
        return null;
      }},
    }},
  ],
}};
"""

_VISUALIZER_IMPORT = "import { visualizer } from 'rollup-plugin-visualizer';"
_VISUALIZER_PLUGIN = (
    "visualizer({{ filename: {report}, title: {title}, open: false, gzipSize: true, "
    "brotliSize: false, template: 'treemap' }})"
)

# Syntax minification stays on so tree-shaking still applies.
_DEBUG_ESBUILD = "{ legalComments: 'none', minifyIdentifiers: false, minifyWhitespace: false, minifySyntax: true }"
_RELEASE_ESBUILD = "{ legalComments: 'none' }"


@dataclass(frozen=True, slots=True)
class BuildOptions:
    analyze: bool = False
    verbose: bool = False
    debug: bool = False
    timeout: float = DEFAULT_BUILD_TIMEOUT


@dataclass(slots=True)
class BuildOutput:
    """Manifest plus access to the emitted chunk files of one build."""

    manifest: Manifest
    out_dir: Path
    entry_chunk_name: str = VIRTUAL_ENTRY_NAME

    def read_chunk(self, file: str) -> bytes:
        return (self.out_dir / file).read_bytes()


class Bundler(Protocol):
    def build(
        self,
        entry: EntryDescriptor,
        externals: Sequence[str],
        root_dir: Path,
        options: BuildOptions,
    ) -> BuildOutput: ...


def render_entry_source(entry: EntryDescriptor) -> str:
    """JavaScript source of the virtual module that represents ``entry``."""
    source = entry.source
    if isinstance(source, InlineCode):
        return source.code
    if isinstance(source, ImportSpec):
        if source.imported_names:
            imports = "\n".join(f"import {{ {name} }} from '{source.module}';" for name in source.imported_names)
            logs = "\n".join(f"console.log({name});" for name in source.imported_names)
            return f"{imports}\n{logs}"
        return f"import * as _ from '{source.module}';\nconsole.log(_);"
    raise BuildError(f'Entry "{entry.id}" must have either code or import property defined')


def render_vite_config(
    entry: EntryDescriptor,
    externals: Sequence[str],
    root_dir: Path,
    out_dir: Path,
    options: BuildOptions,
    report_path: Optional[Path] = None,
) -> str:
    visualizer_import = ""
    visualizer_plugin = ""
    if options.analyze and report_path is not None:
        visualizer_import = _VISUALIZER_IMPORT
        visualizer_plugin = _VISUALIZER_PLUGIN.format(
            report=json.dumps(str(report_path)),
            title=json.dumps(f"Bundle Size Analysis: {entry.id}"),
        )
    return _CONFIG_TEMPLATE.format(
        visualizer_import=visualizer_import,
        visualizer_plugin=visualizer_plugin,
        entry_content=json.dumps(render_entry_source(entry)),
        externals=json.dumps(list(externals)),
        root_dir=json.dumps(str(root_dir)),
        out_dir=json.dumps(str(out_dir)),
        log_level=json.dumps("info" if options.verbose else "silent"),
        minify="'esbuild'" if options.debug else "true",
        esbuild=_DEBUG_ESBUILD if options.debug else _RELEASE_ESBUILD,
    )


@dataclass(frozen=True, slots=True)
class ViteBundler:
    """Runs ``vite build`` in a subprocess, one isolated work directory per entry."""

    command: tuple[str, ...] = ("npx", "--no-install", "vite", "build")
    build_dir_name: str = "build"
    env: dict[str, str] = field(default_factory=dict)

    def work_dir(self, entry: EntryDescriptor, root_dir: Path) -> Path:
        return root_dir / self.build_dir_name / safe_dirname(entry.id)

    def _command(self, config_path: Path) -> List[str]:
        return [*self.command, "--config", str(config_path)]

    def build(
        self,
        entry: EntryDescriptor,
        externals: Sequence[str],
        root_dir: Path,
        options: BuildOptions,
    ) -> BuildOutput:
        work_dir = self.work_dir(entry, root_dir)
        out_dir = work_dir / "dist"
        if work_dir.exists():
            shutil.rmtree(work_dir)
        work_dir.mkdir(parents=True)

        config_path = work_dir / "vite.config.mjs"
        report_path = work_dir.parent / f"{work_dir.name}.html"
        config_path.write_text(
            render_vite_config(entry, externals, root_dir, out_dir, options, report_path),
            encoding="utf-8",
        )

        env = {**os.environ, "NODE_ENV": "production", **self.env}
        LOGGER.debug("Running %s for %s", " ".join(self._command(config_path)), entry.id)
        try:
            subprocess.run(
                self._command(config_path),
                cwd=root_dir,
                env=env,
                check=True,
                capture_output=True,
                text=True,
                timeout=options.timeout,
            )
        except subprocess.CalledProcessError as exc:
            tail = (exc.stderr or exc.stdout or "").strip()[-2000:]
            raise BuildError(f"vite failed to build {entry.id} (exit {exc.returncode}):\n{tail}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BuildError(f"vite timed out after {options.timeout:.0f}s building {entry.id}") from exc
        except OSError as exc:
            raise BuildError(f"Could not run vite for {entry.id}: {exc}") from exc

        manifest_file = out_dir / MANIFEST_PATH
        try:
            raw_manifest = json.loads(manifest_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise BuildError(f"Manifest file not found in output for entry: {entry.id}") from exc

        return BuildOutput(manifest=parse_manifest(raw_manifest), out_dir=out_dir)
