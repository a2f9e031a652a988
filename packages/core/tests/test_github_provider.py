"""Tests for the PyGithub-backed provider.

The PyGithub Repository is a MagicMock; only the attributes the provider
reads are configured.
"""

from unittest.mock import MagicMock

import pytest
from github import GithubException, UnknownObjectException

from pubgate_core.errors import ContentNotFoundError, ProviderError
from pubgate_core.gh.github import GitHubProvider
from pubgate_core.gh.provider import BRANCH_POINT, INITIAL, Commit


def _gh_commit(sha, parents=(), message="msg"):
    commit = MagicMock()
    commit.sha = sha
    commit.parents = [MagicMock(sha=p) for p in parents]
    commit.commit.message = message
    return commit


def _gh_file(filename, status):
    f = MagicMock()
    f.filename = filename
    f.status = status
    return f


def _branch(name, sha):
    branch = MagicMock()
    branch.name = name
    branch.commit.sha = sha
    return branch


class TestCompareCommits:
    def test_maps_comparison(self):
        repo = MagicMock()
        repo.compare.return_value.base_commit = _gh_commit("a", ["p"], "base")
        repo.compare.return_value.commits = [_gh_commit("b", ["a"], "feat: thing\n\nbody")]
        repo.compare.return_value.files = [_gh_file("package.json", "modified")]

        result = GitHubProvider(repo).compare_commits("a", "b")

        repo.compare.assert_called_once_with("a", "b")
        assert result.base_commit == Commit("a", ("p",), "base")
        assert result.commits[0].title == "feat: thing"
        assert result.files[0].filename == "package.json"
        assert result.files[0].status == "modified"

    def test_missing_files(self):
        repo = MagicMock()
        repo.compare.return_value.base_commit = _gh_commit("a", ["p"])
        repo.compare.return_value.commits = []
        repo.compare.return_value.files = None
        assert GitHubProvider(repo).compare_commits("a", "a").files is None

    def test_api_error(self):
        repo = MagicMock()
        repo.compare.side_effect = GithubException(500, {"message": "boom"}, None)
        with pytest.raises(ProviderError, match="could not compare commits a...b"):
            GitHubProvider(repo).compare_commits("a", "b")


class TestGetContent:
    def test_decodes_file(self):
        repo = MagicMock()
        repo.get_contents.return_value.encoding = "base64"
        repo.get_contents.return_value.decoded_content = b'{"version": "1.0.0"}'
        assert GitHubProvider(repo).get_content("package.json", "abc") == '{"version": "1.0.0"}'
        repo.get_contents.assert_called_once_with("package.json", ref="abc")

    def test_not_found(self):
        repo = MagicMock()
        repo.get_contents.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)
        with pytest.raises(ContentNotFoundError) as exc:
            GitHubProvider(repo).get_content("package.json", "abc")
        assert exc.value.ref == "abc"

    def test_other_errors_are_not_treated_as_missing(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(403, {"message": "rate limited"}, None)
        with pytest.raises(ProviderError) as exc:
            GitHubProvider(repo).get_content("package.json", "abc")
        assert not isinstance(exc.value, ContentNotFoundError)

    def test_directory(self):
        repo = MagicMock()
        repo.get_contents.return_value = [MagicMock(), MagicMock()]
        with pytest.raises(ProviderError, match="is a directory"):
            GitHubProvider(repo).get_content("lib", "abc")

    def test_invalid_utf8(self):
        repo = MagicMock()
        repo.get_contents.return_value.encoding = "base64"
        repo.get_contents.return_value.decoded_content = b"\xff\xfe{}"
        with pytest.raises(ProviderError, match="not valid UTF-8") as exc:
            GitHubProvider(repo).get_content("package.json", "abc")
        assert "abc" in str(exc.value)

    def test_file_too_large_for_contents_api(self):
        repo = MagicMock()
        repo.get_contents.return_value.encoding = "none"
        with pytest.raises(ProviderError, match="too large"):
            GitHubProvider(repo).get_content("package.json", "abc")


class TestBacktrack:
    def test_stops_at_merge_base_with_other_branch(self):
        repo = MagicMock()
        repo.get_branches.return_value = [_branch("feature", "h"), _branch("main", "m")]
        repo.compare.return_value.merge_base_commit.sha = "x"
        commits = {"h": _gh_commit("h", ["y"]), "y": _gh_commit("y", ["x"])}
        repo.get_commit.side_effect = commits.__getitem__

        ref = GitHubProvider(repo).backtrack_to_first_branch_ref("h")

        assert ref.sha == "x"
        assert ref.type == BRANCH_POINT
        # The branch pointing at head itself is skipped.
        repo.compare.assert_called_once_with("m", "h")

    def test_skips_orphan_branches(self):
        repo = MagicMock()
        repo.get_branches.return_value = [_branch("gh-pages", "g"), _branch("main", "m")]
        main_comparison = MagicMock()
        main_comparison.merge_base_commit.sha = "x"

        def compare(base, head):
            if base == "g":
                raise UnknownObjectException(404, {"message": "No common ancestor"}, None)
            return main_comparison

        repo.compare.side_effect = compare
        commits = {"h": _gh_commit("h", ["x"])}
        repo.get_commit.side_effect = commits.__getitem__

        ref = GitHubProvider(repo).backtrack_to_first_branch_ref("h")

        assert ref.sha == "x"
        assert ref.type == BRANCH_POINT

    def test_other_compare_errors_still_abort(self):
        repo = MagicMock()
        repo.get_branches.return_value = [_branch("main", "m")]
        repo.compare.side_effect = GithubException(403, {"message": "rate limited"}, None)
        with pytest.raises(ProviderError, match="could not backtrack"):
            GitHubProvider(repo).backtrack_to_first_branch_ref("h")

    def test_reaches_root_commit(self):
        repo = MagicMock()
        repo.get_branches.return_value = []
        commits = {"h": _gh_commit("h", ["r"]), "r": _gh_commit("r", [])}
        repo.get_commit.side_effect = commits.__getitem__

        ref = GitHubProvider(repo).backtrack_to_first_branch_ref("h")

        assert ref.sha == "r"
        assert ref.type == INITIAL

    def test_bounded_walk(self):
        repo = MagicMock()
        repo.get_branches.return_value = []
        repo.get_commit.side_effect = lambda sha: _gh_commit(sha, [sha + "^"])
        with pytest.raises(ProviderError, match="within 3 commits"):
            GitHubProvider(repo, max_backtrack=3).backtrack_to_first_branch_ref("h")

    def test_api_error(self):
        repo = MagicMock()
        repo.get_branches.side_effect = GithubException(502, {"message": "bad gateway"}, None)
        with pytest.raises(ProviderError, match="could not backtrack"):
            GitHubProvider(repo).backtrack_to_first_branch_ref("h")


class TestFromConfig:
    def test_passes_token_and_api_url(self, mocker):
        get_repo = mocker.patch("pubgate_core.gh.github.get_repo")
        provider = GitHubProvider.from_config(
            "acme/widgets", {"github_token": "t0k", "github_api_url": "https://ghe.example/api/v3"}
        )
        get_repo.assert_called_once_with("acme/widgets", token="t0k", base_url="https://ghe.example/api/v3")
        assert provider._repo is get_repo.return_value

    def test_wraps_access_errors(self, mocker):
        mocker.patch(
            "pubgate_core.gh.github.get_repo",
            side_effect=UnknownObjectException(404, {"message": "Not Found"}, None),
        )
        with pytest.raises(ProviderError, match="could not access repository acme/widgets"):
            GitHubProvider.from_config("acme/widgets", {})
