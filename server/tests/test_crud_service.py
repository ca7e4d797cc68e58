"""
通用 CRUD 服务测试 (内存 SQLite)

覆盖场景:
1.  创建后按 ID 读取，默认值 lang=EN / displayOrder=0 / isActive=True
2.  软删除: 启用列表中不可见，按 ID 仍可读取
3.  物理删除: 记录消失，再次删除返回 False
4.  (name, lang) 唯一: 重复拒绝，不同语言允许
5.  部分更新: 未传字段保持不变；改名冲突拒绝
6.  分页: totalElements / totalPages，page 从 0 开始
7.  过滤: 关键字不区分大小写、标签、语言；未知排序字段回退 updatedAt
8.  list_all 按 displayOrder 排序
9.  题目: 多选判定、计数只能通过 record_attempt 修改
10. 网站: top / 批量启停 / 统计
11. 提交失败: 非约束类数据库错误映射为 DATABASE_ERROR (HTTP 500)
"""

import pytest
from sqlalchemy.exc import OperationalError

from blogcms.models.database import Language
from blogcms.models.response import ErrorCode, BusinessException


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def websites(services):
    return services["website"]


@pytest.fixture
def expressions(services):
    return services["expression_ru"]


@pytest.fixture
def mcqs(services):
    return services["multiple_choice_question_ru"]


async def make_website(service, name: str, **extra):
    data = {"name": name, "url": f"https://{name.lower()}.example.com", **extra}
    return await service.create(data, user_id="u-1")


# ── 1. 创建 + 读取 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_create_then_get_round_trip(websites):
    created = await make_website(websites, "Python", tags="lang,docs")

    fetched = await websites.get(created["id"])

    assert fetched["name"] == "Python"
    assert fetched["url"] == "https://python.example.com"
    assert fetched["tags"] == "lang,docs"
    assert fetched["lang"] == "EN"
    assert fetched["displayOrder"] == 0
    assert fetched["isActive"] is True
    assert fetched["createdBy"] == "u-1"
    assert fetched["updatedBy"] == "u-1"
    assert len(fetched["id"]) == 36


@pytest.mark.asyncio
async def test_get_missing_returns_none(websites):
    assert await websites.get("does-not-exist") is None


# ── 2. 软删除 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_soft_delete_hides_from_active_lists(websites):
    kept = await make_website(websites, "Kept")
    removed = await make_website(websites, "Removed")

    assert await websites.delete(removed["id"], user_id="u-2") is True

    names = [w["name"] for w in await websites.list_all()]
    assert names == ["Kept"]

    fetched = await websites.get(removed["id"])
    assert fetched is not None
    assert fetched["isActive"] is False
    assert fetched["updatedBy"] == "u-2"
    assert (await websites.get(kept["id"]))["isActive"] is True


# ── 3. 物理删除 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_hard_delete_removes_row(websites):
    created = await make_website(websites, "Gone")

    assert await websites.delete(created["id"], hard=True) is True
    assert await websites.get(created["id"]) is None
    assert await websites.delete(created["id"], hard=True) is False


# ── 4. 唯一性 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_duplicate_name_and_lang_rejected(websites):
    await make_website(websites, "Docs")

    with pytest.raises(BusinessException) as exc_info:
        await make_website(websites, "Docs")
    assert exc_info.value.code == ErrorCode.DUPLICATE_RESOURCE
    assert exc_info.value.http_status == 400

    other = await make_website(websites, "Docs", lang=Language.ZH)
    assert other["lang"] == "ZH"


@pytest.mark.asyncio
async def test_non_unique_entities_accept_duplicates(expressions):
    first = await expressions.create({"name": "break a leg"})
    second = await expressions.create({"name": "break a leg"})
    assert first["id"] != second["id"]


# ── 5. 部分更新 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(websites):
    created = await make_website(websites, "Blog", description="old", tags="a")

    updated = await websites.update(created["id"], {"description": "new", "tags": None}, user_id="u-9")

    assert updated["description"] == "new"
    assert updated["tags"] == "a"
    assert updated["name"] == "Blog"
    assert updated["url"] == "https://blog.example.com"
    assert updated["updatedBy"] == "u-9"
    assert updated["createdBy"] == "u-1"


@pytest.mark.asyncio
async def test_update_ignores_protected_columns(websites):
    created = await make_website(websites, "Stable")

    updated = await websites.update(created["id"], {"id": "hijack", "created_by": "x", "name": "Stable2"})

    assert updated["id"] == created["id"]
    assert updated["createdBy"] == "u-1"
    assert updated["name"] == "Stable2"


@pytest.mark.asyncio
async def test_update_rename_to_existing_rejected(websites):
    await make_website(websites, "First")
    second = await make_website(websites, "Second")

    with pytest.raises(BusinessException) as exc_info:
        await websites.update(second["id"], {"name": "First"})
    assert exc_info.value.code == ErrorCode.DUPLICATE_RESOURCE


@pytest.mark.asyncio
async def test_update_missing_returns_none(websites):
    assert await websites.update("missing", {"name": "x"}) is None


# ── 6. 分页 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_search_pagination(expressions):
    for i in range(5):
        await expressions.create({"name": f"phrase {i}"})

    page0 = await expressions.search(page=0, size=2)
    page2 = await expressions.search(page=2, size=2)

    assert page0["totalElements"] == 5
    assert page0["totalPages"] == 3
    assert page0["page"] == 0
    assert page0["size"] == 2
    assert len(page0["content"]) == 2
    assert len(page2["content"]) == 1


@pytest.mark.asyncio
async def test_search_empty_result(expressions):
    result = await expressions.search(page=0, size=20)
    assert result["totalElements"] == 0
    assert result["totalPages"] == 0
    assert result["content"] == []


# ── 7. 过滤 / 排序 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_search_filters(websites):
    await make_website(websites, "Python Docs", tags="python,docs")
    await make_website(websites, "Rust Book", tags="rust")
    await make_website(websites, "Python 中文", tags="python", lang=Language.ZH)

    by_keyword = await websites.search({"keyword": "PYTHON"})
    assert by_keyword["totalElements"] == 2

    by_lang = await websites.search({"keyword": "python", "lang": Language.ZH})
    assert [w["name"] for w in by_lang["content"]] == ["Python 中文"]

    by_tag = await websites.search({"tags": "rust"})
    assert [w["name"] for w in by_tag["content"]] == ["Rust Book"]


@pytest.mark.asyncio
async def test_search_sort_by_name_and_unknown_column(websites):
    for name in ("b", "c", "a"):
        await make_website(websites, name)

    ascending = await websites.search(sort="name", direction="asc")
    assert [w["name"] for w in ascending["content"]] == ["a", "b", "c"]

    fallback = await websites.search(sort="noSuchColumn")
    assert fallback["totalElements"] == 3


# ── 8. list_all ──────────────────────────────────────


@pytest.mark.asyncio
async def test_list_all_orders_by_display_order(websites):
    await make_website(websites, "Third", display_order=3)
    await make_website(websites, "First", display_order=1)
    await make_website(websites, "Second", display_order=2)
    await make_website(websites, "Chinese", display_order=0, lang=Language.ZH)

    english = await websites.list_all(lang=Language.EN)

    assert [w["name"] for w in english] == ["First", "Second", "Third"]


# ── 9. 题目 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_mcq_multiple_correct_inferred(mcqs):
    single = await mcqs.create({"question": "2+2?", "option_a": "4", "correct_answers": "A"})
    multiple = await mcqs.create({"question": "Primes?", "correct_answers": "A,C"})

    assert single["isMultipleCorrect"] is False
    assert multiple["isMultipleCorrect"] is True
    assert single["successCount"] == 0
    assert single["failCount"] == 0


@pytest.mark.asyncio
async def test_attempt_counters(mcqs):
    created = await mcqs.create({"question": "Q", "correct_answers": "B", "success_count": 99})
    assert created["successCount"] == 0

    assert await mcqs.record_attempt(created["id"], success=True) is True
    assert await mcqs.record_attempt(created["id"], success=True) is True
    assert await mcqs.record_attempt(created["id"], success=False) is True

    fetched = await mcqs.get(created["id"])
    assert fetched["successCount"] == 2
    assert fetched["failCount"] == 1

    updated = await mcqs.update(created["id"], {"fail_count": 0, "explanation": "because"})
    assert updated["failCount"] == 1
    assert updated["explanation"] == "because"

    assert await mcqs.record_attempt("missing", success=True) is False


@pytest.mark.asyncio
async def test_question_keyword_searches_question_text(services):
    questions = services["question"]
    await questions.create({"question": "What is FastAPI?", "answer": "A web framework"})
    await questions.create({"question": "What is Pillow?", "answer": "An imaging library"})

    result = await questions.search({"keyword": "fastapi"})
    assert [q["question"] for q in result["content"]] == ["What is FastAPI?"]


# ── 10. 网站扩展操作 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_website_top_bulk_and_statistics(websites):
    a = await make_website(websites, "A", display_order=2)
    b = await make_website(websites, "B", display_order=1)
    await make_website(websites, "C", display_order=0, lang=Language.ZH)

    top = await websites.top(limit=2)
    assert [w["name"] for w in top] == ["C", "B"]

    updated = await websites.bulk_set_active([a["id"], b["id"], "missing"], False, user_id="admin")
    assert updated == 2

    stats = await websites.statistics()
    assert stats["totalWebsites"] == 3
    assert stats["activeWebsites"] == 1
    assert stats["inactiveWebsites"] == 2
    assert stats["websitesByLanguage"] == {"EN": 2, "ZH": 1}


# ── 11. 提交失败 ──────────────────────────────────────


class BrokenSession:
    """commit 抛出连接错误的会话"""

    def __init__(self):
        self.rolled_back = False

    async def commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    async def rollback(self):
        self.rolled_back = True


@pytest.mark.asyncio
async def test_commit_failure_maps_to_database_error(websites):
    session = BrokenSession()

    with pytest.raises(BusinessException) as exc_info:
        await websites._commit(session)

    assert exc_info.value.code == ErrorCode.DATABASE_ERROR
    assert exc_info.value.http_status == 500
    assert session.rolled_back is True
