#!/usr/bin/env python3
"""
Tests for recursive copy, move and delete.

These use real trees under tmp_path. Failures are provoked by patching
the copy primitive, since tests may run as root where permission bits
do not stop anything.
"""

import errno
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fileshell import tree_ops
from fileshell.errors import Interrupted, NotFound, UsageError
from fileshell.tree_ops import TreeReport, copy, delete, destination_for, move


def snapshot(root):
    """Map relative path -> ('dir'|'link'|'file', payload) for a tree."""
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(path, root)
            if os.path.islink(path):
                result[rel] = ('link', os.readlink(path))
            elif os.path.isdir(path):
                result[rel] = ('dir', None)
            else:
                with open(path, 'rb') as f:
                    result[rel] = ('file', f.read())
    return result


class TestCopy:
    """Copying files and trees."""

    def test_copy_single_file(self, sample_tree):
        report = copy(str(sample_tree / 'a.txt'), str(sample_tree / 'copy.txt'))
        assert report.ok
        assert (sample_tree / 'copy.txt').read_text() == 'alpha'
        assert (sample_tree / 'a.txt').exists()

    def test_copy_preserves_mode(self, sample_tree):
        os.chmod(sample_tree / 'b.py', 0o751)
        copy(str(sample_tree / 'b.py'), str(sample_tree / 'c.py'))
        assert os.stat(sample_tree / 'c.py').st_mode & 0o777 == 0o751

    def test_copy_overwrites_existing_file(self, sample_tree):
        copy(str(sample_tree / 'a.txt'), str(sample_tree / 'b.py'))
        assert (sample_tree / 'b.py').read_text() == 'alpha'

    def test_copy_tree_is_identical(self, sample_tree, tmp_path):
        """Given a tree with files, dirs and symlinks, the copy matches it."""
        dst = tmp_path / 'copy'
        report = copy(str(sample_tree), str(dst))

        assert report.ok
        assert snapshot(dst) == snapshot(sample_tree)

    def test_copy_keeps_symlinks_as_symlinks(self, sample_tree, tmp_path):
        dst = tmp_path / 'copy'
        copy(str(sample_tree), str(dst))

        assert os.path.islink(dst / 'link')
        assert os.readlink(dst / 'link') == 'a.txt'
        assert os.path.islink(dst / 'sub_link')
        assert os.readlink(dst / 'sub_link') == 'sub'

    def test_copy_does_not_descend_into_symlinked_dirs(self, sample_tree, tmp_path):
        dst = tmp_path / 'copy'
        report = copy(str(sample_tree), str(dst))
        # .hidden a.txt b.py link sub c.txt deep d.py sub_link, plus root
        assert report.entries == 10

    def test_copy_survives_deleting_the_original(self, sample_tree, tmp_path):
        before = snapshot(sample_tree)
        dst = tmp_path / 'copy'
        copy(str(sample_tree), str(dst))
        delete(str(sample_tree))

        assert not sample_tree.exists()
        assert snapshot(dst) == before

    def test_copy_symlink_itself(self, sample_tree):
        copy(str(sample_tree / 'link'), str(sample_tree / 'link2'))
        assert os.readlink(sample_tree / 'link2') == 'a.txt'

    def test_copy_creates_missing_parents(self, sample_tree, tmp_path):
        dst = tmp_path / 'x' / 'y' / 'a.txt'
        copy(str(sample_tree / 'a.txt'), str(dst))
        assert dst.read_text() == 'alpha'

    def test_copy_missing_source(self, tmp_path):
        with pytest.raises(NotFound):
            copy(str(tmp_path / 'missing'), str(tmp_path / 'dst'))

    def test_copy_into_itself_is_refused(self, sample_tree):
        with pytest.raises(UsageError):
            copy(str(sample_tree), str(sample_tree / 'sub' / 'again'))

    def test_failures_are_collected_and_copy_continues(self, sample_tree, tmp_path, monkeypatch):
        """Given one file that cannot be copied, the rest of the tree still is."""
        real_copy = tree_ops._copy_regular

        def flaky_copy(src, dst):
            if os.path.basename(src) == 'c.txt':
                raise PermissionError(errno.EACCES, 'Permission denied', src)
            real_copy(src, dst)

        monkeypatch.setattr(tree_ops, '_copy_regular', flaky_copy)
        dst = tmp_path / 'copy'
        report = copy(str(sample_tree), str(dst))

        assert not report.ok
        assert [path for path, _ in report.failures] == [str(sample_tree / 'sub' / 'c.txt')]
        assert (dst / 'a.txt').exists()
        assert (dst / 'sub' / 'deep' / 'd.py').exists()
        assert not (dst / 'sub' / 'c.txt').exists()

    def test_copy_interrupted(self, sample_tree, tmp_path, trip_token):
        token = trip_token(3)
        with pytest.raises(Interrupted) as exc_info:
            copy(str(sample_tree), str(tmp_path / 'copy'), token)

        report = exc_info.value.report
        assert isinstance(report, TreeReport)
        assert report.entries < 10
        assert not (tmp_path / 'copy' / 'sub' / 'deep').exists()


class TestDelete:
    """Recursive delete."""

    def test_delete_file(self, sample_tree):
        report = delete(str(sample_tree / 'a.txt'))
        assert report.ok
        assert not (sample_tree / 'a.txt').exists()

    def test_delete_tree(self, sample_tree):
        report = delete(str(sample_tree))
        assert report.ok
        assert not os.path.lexists(sample_tree)

    def test_delete_symlink_leaves_target(self, sample_tree):
        delete(str(sample_tree / 'sub_link'))
        assert not os.path.lexists(sample_tree / 'sub_link')
        assert (sample_tree / 'sub' / 'c.txt').exists()

    def test_delete_tree_with_symlinked_dir_keeps_outside(self, tmp_path):
        outside = tmp_path / 'outside'
        outside.mkdir()
        (outside / 'keep.txt').write_text('keep')
        tree = tmp_path / 'tree'
        tree.mkdir()
        os.symlink(str(outside), tree / 'out')

        delete(str(tree))

        assert not tree.exists()
        assert (outside / 'keep.txt').read_text() == 'keep'

    def test_delete_missing(self, tmp_path):
        with pytest.raises(NotFound):
            delete(str(tmp_path / 'missing'))

    def test_delete_failure_is_reported_for_child_and_parent(self, sample_tree, monkeypatch):
        real_unlink = os.unlink

        def guarded_unlink(path, *args, **kwargs):
            if os.path.basename(path) == 'c.txt':
                raise PermissionError(errno.EACCES, 'Permission denied', path)
            return real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(os, 'unlink', guarded_unlink)
        report = delete(str(sample_tree / 'sub'))

        failed = [path for path, _ in report.failures]
        assert str(sample_tree / 'sub' / 'c.txt') in failed
        assert str(sample_tree / 'sub') in failed
        assert not (sample_tree / 'sub' / 'deep').exists()

    def test_delete_interrupted(self, sample_tree, trip_token):
        with pytest.raises(Interrupted) as exc_info:
            delete(str(sample_tree), trip_token(2))
        assert exc_info.value.report is not None
        assert sample_tree.exists()


class TestMove:
    """Rename and the copy+delete fallback."""

    def test_move_renames(self, sample_tree, tmp_path):
        dst = tmp_path / 'moved'
        before = snapshot(sample_tree)

        report = move(str(sample_tree), str(dst))

        assert report.renamed
        assert not sample_tree.exists()
        assert snapshot(dst) == before

    def test_move_creates_missing_parent(self, sample_tree, tmp_path):
        dst = tmp_path / 'new' / 'place.txt'
        move(str(sample_tree / 'a.txt'), str(dst))
        assert dst.read_text() == 'alpha'

    def test_move_symlink_itself(self, sample_tree):
        move(str(sample_tree / 'link'), str(sample_tree / 'link2'))
        assert os.readlink(sample_tree / 'link2') == 'a.txt'
        assert (sample_tree / 'a.txt').exists()

    def test_move_falls_back_across_devices(self, sample_tree, tmp_path, monkeypatch):
        """Given rename fails with EXDEV, the tree is copied then deleted."""
        def cross_device(src, dst):
            raise OSError(errno.EXDEV, 'Invalid cross-device link')

        monkeypatch.setattr(os, 'rename', cross_device)
        before = snapshot(sample_tree)
        dst = tmp_path / 'moved'

        report = move(str(sample_tree), str(dst))

        assert report.ok
        assert not report.renamed
        assert not sample_tree.exists()
        assert snapshot(dst) == before

    def test_fallback_keeps_source_when_copy_fails(self, sample_tree, tmp_path, monkeypatch):
        def cross_device(src, dst):
            raise OSError(errno.EXDEV, 'Invalid cross-device link')

        def broken_copy(src, dst):
            raise OSError(errno.EIO, 'Input/output error', src)

        monkeypatch.setattr(os, 'rename', cross_device)
        monkeypatch.setattr(tree_ops, '_copy_regular', broken_copy)

        report = move(str(sample_tree), str(tmp_path / 'moved'))

        assert not report.ok
        assert (sample_tree / 'a.txt').read_text() == 'alpha'

    def test_fallback_delete_failure_leaves_both_trees(self, sample_tree, tmp_path, monkeypatch):
        """Given the source cannot be fully deleted, the copy stays and the failure is reported."""
        def cross_device(src, dst):
            raise OSError(errno.EXDEV, 'Invalid cross-device link')

        source_file = str(sample_tree / 'sub' / 'c.txt')
        real_unlink = os.unlink

        def guarded_unlink(path, *args, **kwargs):
            if str(path) == source_file:
                raise PermissionError(errno.EACCES, 'Permission denied', path)
            return real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(os, 'rename', cross_device)
        monkeypatch.setattr(os, 'unlink', guarded_unlink)
        before = snapshot(sample_tree)
        dst = tmp_path / 'moved'

        report = move(str(sample_tree), str(dst))

        assert not report.ok
        assert not report.renamed
        assert source_file in [path for path, _ in report.failures]
        assert snapshot(dst) == before
        assert (sample_tree / 'sub' / 'c.txt').read_text() == 'charlie'

    def test_move_into_itself_is_refused(self, sample_tree):
        with pytest.raises(UsageError):
            move(str(sample_tree), str(sample_tree / 'sub' / 'x'))

    def test_move_missing(self, tmp_path):
        with pytest.raises(NotFound):
            move(str(tmp_path / 'missing'), str(tmp_path / 'x'))


class TestDestinationFor:
    """Existing directories receive the source's basename."""

    def test_into_existing_directory(self, sample_tree):
        assert destination_for('/x/a.txt', str(sample_tree / 'sub')) == str(sample_tree / 'sub' / 'a.txt')

    def test_new_name(self, sample_tree):
        assert destination_for('/x/a.txt', str(sample_tree / 'new')) == str(sample_tree / 'new')

    def test_trailing_slash_places_inside_new_directory(self, sample_tree):
        new = str(sample_tree / 'new')
        assert destination_for('/x/a.txt', new, into_dir=True) == os.path.join(new, 'a.txt')
