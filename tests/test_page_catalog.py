from pathlib import Path

from taskboard.page_catalog import GROUP_ORDER, catalog_by_group, find_page, get_page_catalog, visible_pages

ROOT = Path(__file__).resolve().parents[1]


def test_every_page_file_exists():
    for spec in get_page_catalog():
        assert (ROOT / spec.path).is_file(), spec.path


def test_paths_are_unique():
    paths = [p.path for p in get_page_catalog()]
    assert len(paths) == len(set(paths))


def test_regular_users_do_not_see_admin_pages():
    titles = [p.title for p in visible_pages(["user"])]
    assert "Board" in titles
    assert "Reports" in titles
    assert "System Settings" not in titles


def test_admin_sees_everything():
    assert len(visible_pages(["admin"])) == len(get_page_catalog())


def test_groups_follow_order():
    assert list(catalog_by_group()) == GROUP_ORDER
    assert list(catalog_by_group(visible_pages([]))) == ["Board", "Reports"]


def test_find_page():
    assert find_page("pages/6_Roles.py").required_role == "admin"
    assert find_page("pages/missing.py") is None
