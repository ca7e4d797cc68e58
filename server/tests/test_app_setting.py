"""
应用配置服务测试

覆盖场景:
1.  创建默认值: lang=EN, isSystem=False, isPublic=False
2.  (name, lang) 重复拒绝，不同语言允许
3.  系统配置: 不带 isSystem 的更新被拒绝，带 isSystem 可更新；不可删除
4.  按名称取值 / 设值；系统配置不可设值；不存在报 404
5.  公开配置 / 用户可编辑配置 / 去重名称 / 统计；列表按名称、语言排序
6.  删除总是物理删除
"""

import pytest

from blogcms.models.database import Language
from blogcms.models.response import ErrorCode, BusinessException, NotFoundException


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def settings_service(services):
    return services["app_setting"]


# ── 1. 创建 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_create_defaults(settings_service):
    setting = await settings_service.create({"name": "site.title", "value": "My Blog"})

    assert setting["lang"] == "EN"
    assert setting["isSystem"] is False
    assert setting["isPublic"] is False
    assert "isActive" not in setting


# ── 2. 唯一性 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_duplicate_name_and_lang(settings_service):
    await settings_service.create({"name": "theme", "value": "dark"})

    with pytest.raises(BusinessException) as exc_info:
        await settings_service.create({"name": "theme", "value": "light"})
    assert exc_info.value.code == ErrorCode.DUPLICATE_RESOURCE
    assert "theme" in exc_info.value.message

    zh = await settings_service.create({"name": "theme", "value": "暗色", "lang": Language.ZH})
    assert zh["lang"] == "ZH"


# ── 3. 系统配置 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_system_setting_locked(settings_service):
    setting = await settings_service.create({"name": "core.version", "value": "1", "is_system": True})

    with pytest.raises(BusinessException) as exc_info:
        await settings_service.update(setting["id"], {"value": "2"})
    assert exc_info.value.code == ErrorCode.SYSTEM_SETTING_LOCKED

    updated = await settings_service.update(setting["id"], {"value": "2", "is_system": True})
    assert updated["value"] == "2"

    with pytest.raises(BusinessException) as exc_info:
        await settings_service.delete(setting["id"])
    assert exc_info.value.code == ErrorCode.SYSTEM_SETTING_LOCKED
    assert await settings_service.get(setting["id"]) is not None


# ── 4. 按名称取值 / 设值 ──────────────────────────────────


@pytest.mark.asyncio
async def test_get_and_set_value(settings_service):
    await settings_service.create({"name": "footer", "value": "old"})

    assert await settings_service.get_value("footer", Language.EN) == "old"
    assert await settings_service.get_value("footer", Language.ZH, default="n/a") == "n/a"

    updated = await settings_service.set_value("footer", Language.EN, "new", user_id="editor")
    assert updated["value"] == "new"
    assert updated["updatedBy"] == "editor"
    assert await settings_service.exists("footer", Language.EN) is True
    assert await settings_service.exists("footer", Language.ZH) is False


@pytest.mark.asyncio
async def test_set_value_missing_or_system(settings_service):
    with pytest.raises(NotFoundException):
        await settings_service.set_value("missing", Language.EN, "x")

    await settings_service.create({"name": "locked", "value": "1", "is_system": True})
    with pytest.raises(BusinessException) as exc_info:
        await settings_service.set_value("locked", Language.EN, "2")
    assert exc_info.value.code == ErrorCode.SYSTEM_SETTING_LOCKED


# ── 5. 查询 / 统计 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_listings_and_statistics(settings_service):
    await settings_service.create({"name": "a", "value": "1", "is_public": True})
    await settings_service.create({"name": "a", "value": "1", "is_public": True, "lang": Language.ZH})
    await settings_service.create({"name": "b", "value": "2", "is_system": True})
    await settings_service.create({"name": "c", "value": "3"})

    public_en = await settings_service.list_public(Language.EN)
    assert [s["name"] for s in public_en] == ["a"]
    assert len(await settings_service.list_public()) == 2

    editable = await settings_service.list_user_editable(Language.EN)
    assert sorted(s["name"] for s in editable) == ["a", "c"]

    assert [s["lang"] for s in await settings_service.list_by_name("a")] == ["EN", "ZH"]
    assert await settings_service.distinct_names() == ["a", "b", "c"]

    stats = await settings_service.statistics()
    assert stats == {
        "totalSettings": 4,
        "englishSettings": 3,
        "chineseSettings": 1,
        "publicSettings": 2,
        "systemSettings": 1,
    }


@pytest.mark.asyncio
async def test_public_and_editable_sorted_by_name_then_lang(settings_service):
    await settings_service.create({"name": "zeta", "value": "1", "is_public": True})
    await settings_service.create({"name": "alpha", "value": "2", "is_public": True, "lang": Language.ZH})
    await settings_service.create({"name": "alpha", "value": "3", "is_public": True})

    public = await settings_service.list_public()
    assert [(s["name"], s["lang"]) for s in public] == [("alpha", "EN"), ("alpha", "ZH"), ("zeta", "EN")]

    editable = await settings_service.list_user_editable(Language.EN)
    assert [s["name"] for s in editable] == ["alpha", "zeta"]


# ── 6. 删除 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_is_hard(settings_service):
    setting = await settings_service.create({"name": "temp", "value": "x"})

    assert await settings_service.delete(setting["id"]) is True
    assert await settings_service.get(setting["id"]) is None
    assert await settings_service.delete_by_name("temp", Language.EN) is False
