"""Tests for config parsing."""

import pytest

from mirror_upload.exceptions import ConfigError, InvalidValueError, MissingFieldError
from mirror_upload.models import (
    DependencyType,
    EmptyAssetsPolicy,
    MirrorConfig,
    RelationType,
    ReleaseLevel,
    Secrets,
)


def test_minimal_config_defaults():
    config = MirrorConfig.from_dict({"github": "owner/repo"})
    assert config.repo == ("owner", "repo")
    assert config.file_regex == "^.+$"
    assert config.release_level is None
    assert config.projects == ()
    assert config.on_empty_assets == EmptyAssetsPolicy.FAIL
    assert config.max_concurrent == 1


def test_full_config():
    config = MirrorConfig.from_dict(
        {
            "github": "owner/repo",
            "loaders": ["fabric"],
            "game_versions": ["1.20.1", "1.20.2"],
            "release_level": "beta",
            "on_empty_assets": "skip",
            "max_concurrent": 4,
            "modrinth": {
                "project_id": "AABB",
                "slug": "my-mod",
                "version_number": "${ tag }+fabric",
                "featured": True,
                "dependencies": [
                    {"project_id": "P7dR8mSH"},
                    {"project_id": "mOgUt4GM", "dependency_type": "optional"},
                ],
            },
            "curseforge": {
                "project_id": 123456,
                "relations": [
                    {"slug": "fabric-api"},
                    {"slug": "modmenu", "type": "optional_dependency"},
                ],
            },
            "projects": [{"loaders": ["forge"]}],
        }
    )
    assert config.loaders == ("fabric",)
    assert config.game_versions == ("1.20.1", "1.20.2")
    assert config.release_level == ReleaseLevel.BETA
    assert config.on_empty_assets == EmptyAssetsPolicy.SKIP
    assert config.max_concurrent == 4

    assert config.modrinth.version_number == "${ tag }+fabric"
    assert config.modrinth.featured is True
    deps = config.modrinth.dependencies
    assert [d.project_id for d in deps] == ["P7dR8mSH", "mOgUt4GM"]
    assert deps[0].dependency_type == DependencyType.REQUIRED
    assert deps[1].dependency_type == DependencyType.OPTIONAL

    assert config.curseforge.project_id == "123456"
    relations = config.curseforge.relations
    assert relations[0].relation_type == RelationType.REQUIRED_DEPENDENCY
    assert relations[1].relation_type == RelationType.OPTIONAL_DEPENDENCY

    assert len(config.projects) == 1
    assert config.projects[0].loaders == ("forge",)
    assert config.projects[0].game_versions is None


def test_target_shorthand():
    config = MirrorConfig.from_dict({"github": "owner/repo", "curseforge": "123456"})
    assert config.curseforge.project_id == "123456"
    assert config.curseforge.relations == ()


def test_modrinth_version_number_defaults_to_tag():
    config = MirrorConfig.from_dict({"github": "o/r", "modrinth": {"project_id": "x"}})
    assert config.modrinth.version_number == "$tag"


def test_missing_github():
    with pytest.raises(MissingFieldError):
        MirrorConfig.from_dict({"loaders": ["fabric"]})


@pytest.mark.parametrize("github", ["repo-only", "/repo", "owner/"])
def test_bad_github_format(github):
    with pytest.raises(InvalidValueError):
        MirrorConfig.from_dict({"github": github})


@pytest.mark.parametrize(
    "data",
    [
        {"release_level": "stable"},
        {"on_empty_assets": "ignore"},
        {"max_concurrent": 0},
        {"max_concurrent": True},
        {"loaders": "fabric"},
        {"game_versions": [1, 2]},
        {"modrinth": {"project_id": "x", "featured": "yes"}},
        {"modrinth": {"project_id": "x", "dependencies": [{"project_id": "y", "dependency_type": "soft"}]}},
        {"curseforge": {"project_id": "1", "relations": [{"slug": "a", "type": "needs"}]}},
        {"projects": {"loaders": ["fabric"]}},
    ],
)
def test_invalid_values(data):
    with pytest.raises(ConfigError):
        MirrorConfig.from_dict({"github": "owner/repo", **data})


def test_target_requires_project_id():
    with pytest.raises(MissingFieldError) as exc_info:
        MirrorConfig.from_dict({"github": "o/r", "projects": [{"modrinth": {"slug": "x"}}]})
    assert exc_info.value.context["field"] == "projects[0].modrinth.project_id"


def test_relation_api_value():
    assert RelationType.REQUIRED_DEPENDENCY.api_value == "requiredDependency"
    assert RelationType.EMBEDDED_LIBRARY.api_value == "embeddedLibrary"
    assert RelationType.TOOL.api_value == "tool"


def test_secrets_modrinth_falls_back_to_github_token():
    assert Secrets.from_dict({"github_token": "gh"}).modrinth == "gh"
    assert Secrets.from_dict({"github_token": "gh", "modrinth_token": "mr"}).modrinth == "mr"


def test_secrets_from_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh")
    monkeypatch.delenv("CURSEFORGE_TOKEN", raising=False)
    monkeypatch.delenv("MODRINTH_TOKEN", raising=False)
    secrets = Secrets.from_env()
    assert secrets.github_token == "gh"
    assert secrets.curseforge_token == ""
    assert secrets.modrinth == "gh"


def test_secrets_repr_hides_tokens():
    assert "gh-secret" not in repr(Secrets(github_token="gh-secret"))
