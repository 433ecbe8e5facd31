"""ソースファイル列挙のユニットテスト。"""

from collections.abc import Callable
from pathlib import Path

from archguard.services.scanner import is_test_file, iter_source_files, relative_posix

WriteTree = Callable[[Path, dict[str, str]], Path]


class TestIterSourceFiles:
    def test_excludes_build_output_and_dependencies(self, tmp_path: Path, write_tree: WriteTree) -> None:
        root = write_tree(
            tmp_path,
            {
                "app/page.tsx": "",
                "node_modules/react/index.js": "",
                ".next/server/page.js": "",
                "dist/bundle.js": "",
                ".git/hooks/pre-commit.js": "",
                "lib/utils.ts": "",
            },
        )
        files = [relative_posix(f, root) for f in iter_source_files(root)]
        assert files == ["app/page.tsx", "lib/utils.ts"]

    def test_filters_by_extension(self, tmp_path: Path, write_tree: WriteTree) -> None:
        root = write_tree(tmp_path, {"app/page.tsx": "", "app/globals.css": "", "README.md": "", "a.mjs": ""})
        files = [relative_posix(f, root) for f in iter_source_files(root)]
        assert files == ["a.mjs", "app/page.tsx"]

    def test_test_files_are_excluded_by_default(self, tmp_path: Path, write_tree: WriteTree) -> None:
        root = write_tree(
            tmp_path,
            {"lib/a.ts": "", "lib/a.test.ts": "", "__tests__/b.tsx": "", "lib/c.spec.tsx": ""},
        )
        assert [relative_posix(f, root) for f in iter_source_files(root)] == ["lib/a.ts"]
        assert len(iter_source_files(root, include_tests=True)) == 4

    def test_ignore_patterns(self, tmp_path: Path, write_tree: WriteTree) -> None:
        root = write_tree(tmp_path, {"app/page.tsx": "", "scripts/seed.js": "", "scripts/tools/gen.js": ""})
        files = [relative_posix(f, root) for f in iter_source_files(root, ignore_patterns=["scripts/*"])]
        assert files == ["app/page.tsx"]

    def test_file_root_returns_itself(self, tmp_path: Path, write_tree: WriteTree) -> None:
        root = write_tree(tmp_path, {"app/page.tsx": ""})
        target = root / "app" / "page.tsx"
        assert iter_source_files(target) == [target]


class TestHelpers:
    def test_is_test_file(self) -> None:
        assert is_test_file("components/a.test.tsx")
        assert is_test_file("tests/helpers.ts")
        assert not is_test_file("components/latest.tsx")

    def test_relative_posix_outside_root(self, tmp_path: Path) -> None:
        outside = tmp_path / "a.ts"
        root = tmp_path / "project"
        assert relative_posix(outside, root) == outside.resolve().as_posix()
