"""
文件类服务测试 (内存 SQLite + tmp_path 上传目录)

覆盖场景:
1.  文章: 上传封面缩放到封面尺寸；同名封面创建时拒绝；更新封面后删除旧封面；物理删除清理封面
2.  文章: 封面 URL 未变化不重复下载
3.  音频: 同名文件拒绝 (FILE_ALREADY_EXISTS)；缺少文件和 URL 报错；物理删除清理文件
4.  通用文件: 同名上传追加 -1 后缀，记录扩展名和 MIME
5.  图片: 主图 + 缩略图，文件名含宽高；修改扩展名转换文件
6.  Logo: 拼音文件名、目标尺寸、大小上限、改名重命名文件、URL 扩展名默认 png
7.  单词: 配图 / 发音以单词命名；改名同步重命名；URL 变化才下载
8.  附属图片: 记录宽高；缺少来源报错
9.  更新写库失败: 新保存的文件被清理，已重命名的文件恢复原名
"""

import re
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image

from blogcms.models.response import ErrorCode, BusinessException
from blogcms.services.base import CrudService
from blogcms.services.media import COVER_SUBDIR
from blogcms.services.vocabulary import IMAGE_SUBDIR, AUDIO_SUBDIR
from blogcms.utils.storage import FileStorage

from conftest import make_image_bytes, make_upload

MP3_BYTES = b"ID3\x03\x00\x00\x00\x00\x00\x0ffake-audio-frames"


def image_size(storage, filename, subdir=None):
    with Image.open(storage.path(filename, subdir)) as image:
        return image.size


# ── 1. 文章封面 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_article_cover_upload_resized(services):
    articles = services["article"]
    upload = make_upload(make_image_bytes((1200, 800)), "cover.png", "image/png")

    article = await articles.create({"title": "Hello"}, cover=upload)

    assert article["coverImageFilename"] == "cover.png"
    assert article["coverImageFileUrl"] == "/v1/public/articles/cover-images/cover.png"
    assert image_size(articles.storage, "cover.png", COVER_SUBDIR) == (600, 400)


@pytest.mark.asyncio
async def test_article_cover_duplicate_rejected_on_create(services):
    articles = services["article"]
    await articles.create({"title": "A"}, cover=make_upload(make_image_bytes(), "same.png"))

    with pytest.raises(BusinessException) as exc_info:
        await articles.create({"title": "B"}, cover=make_upload(make_image_bytes(), "same.png"))

    assert exc_info.value.code == ErrorCode.FILE_ALREADY_EXISTS
    assert exc_info.value.message == "Cover image already exists: same.png"
    assert (await articles.search())["totalElements"] == 1


@pytest.mark.asyncio
async def test_article_cover_replaced_and_cleaned(services):
    articles = services["article"]
    article = await articles.create({"title": "A"}, cover=make_upload(make_image_bytes(), "old.png"))

    updated = await articles.update(
        article["id"], {"summary": "s"}, cover=make_upload(make_image_bytes(), "new.png")
    )

    assert updated["coverImageFilename"] == "new.png"
    assert not articles.storage.exists("old.png", COVER_SUBDIR)
    assert articles.storage.exists("new.png", COVER_SUBDIR)

    assert await articles.delete(article["id"], hard=True) is True
    assert not articles.storage.exists("new.png", COVER_SUBDIR)


@pytest.mark.asyncio
async def test_article_soft_delete_keeps_cover(services):
    articles = services["article"]
    article = await articles.create({"title": "A"}, cover=make_upload(make_image_bytes(), "keep.png"))

    await articles.delete(article["id"])

    assert articles.storage.exists("keep.png", COVER_SUBDIR)


# ── 2. 封面 URL ──────────────────────────────────────


@pytest.mark.asyncio
async def test_article_cover_url_downloaded_once(services):
    articles = services["article"]
    url = "https://img.example.com/covers/sunset.jpg"
    download = AsyncMock(return_value=make_image_bytes((900, 900), "JPEG"))

    with patch.object(FileStorage, "download", download):
        article = await articles.create({"title": "A", "cover_image_original_url": url})
        await articles.update(article["id"], {"cover_image_original_url": url, "summary": "x"})

    assert download.await_count == 1
    assert article["coverImageFilename"] == "sunset.jpg"
    assert image_size(articles.storage, "sunset.jpg", COVER_SUBDIR) == (600, 600)


# ── 3. 音频 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_audio_duplicate_filename_rejected(services):
    audios = services["audio"]
    first = await audios.create({"name": "Song"}, file=make_upload(MP3_BYTES, "song.mp3"))

    assert first["filename"] == "song.mp3"
    assert first["sizeBytes"] == len(MP3_BYTES)
    assert first["fileUrl"] == "/v1/public/audios/song.mp3"

    with pytest.raises(BusinessException) as exc_info:
        await audios.create({"name": "Song again"}, file=make_upload(MP3_BYTES, "song.mp3"))
    assert exc_info.value.code == ErrorCode.FILE_ALREADY_EXISTS
    assert exc_info.value.message == "Filename already exists"


@pytest.mark.asyncio
async def test_audio_requires_file_or_url(services):
    with pytest.raises(BusinessException) as exc_info:
        await services["audio"].create({"name": "Nothing"})
    assert exc_info.value.code == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_audio_with_cover_hard_delete_removes_files(services):
    audios = services["audio_ru"]
    audio = await audios.create(
        {"name": "Track", "artist": "Band"},
        file=make_upload(MP3_BYTES, "track.mp3"),
        cover=make_upload(make_image_bytes(), "art.png"),
    )

    assert audio["artist"] == "Band"
    assert audio["coverImageFileUrl"] == "/v1/public/rubi/audios/cover-images/art.png"
    assert "rubi" in str(audios.storage.directory)

    await audios.delete(audio["id"], hard=True)

    assert not audios.storage.exists("track.mp3")
    assert not audios.storage.exists("art.png", COVER_SUBDIR)


# ── 4. 通用文件 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_file_collision_gets_suffix(services):
    files = services["file"]
    first = await files.create({"name": "Report"}, file=make_upload(b"%PDF-1.4 a", "report.pdf"))
    second = await files.create({"name": "Report 2"}, file=make_upload(b"%PDF-1.4 b", "report.pdf"))

    assert first["filename"] == "report.pdf"
    assert second["filename"] == "report-1.pdf"
    assert second["extension"] == "pdf"
    assert second["mimeType"] == "application/pdf"


# ── 5. 图片 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_image_main_and_thumbnail(services):
    images = services["image"]
    image = await images.create(
        {"name": "Mountain View"},
        file=make_upload(make_image_bytes((4000, 2000)), "raw.png"),
    )

    assert re.fullmatch(r"mountain_view_1920_960_\d{13}\.png", image["filename"])
    assert re.fullmatch(r"mountain_view_200_100_\d{13}\.png", image["thumbnailFilename"])
    assert (image["width"], image["height"]) == (1920, 960)
    assert image["mimeType"] == "image/png"
    assert image_size(images.storage, image["thumbnailFilename"]) == (200, 100)


@pytest.mark.asyncio
async def test_image_rejects_undecodable_upload(services):
    with pytest.raises(BusinessException) as exc_info:
        await services["image"].create({"name": "x"}, file=make_upload(b"not an image", "x.png"))
    assert exc_info.value.code == ErrorCode.UNSUPPORTED_FILE_TYPE


@pytest.mark.asyncio
async def test_image_extension_change_converts_files(services):
    images = services["image"]
    image = await images.create({"name": "pic"}, file=make_upload(make_image_bytes((300, 300)), "a.png"))

    updated = await images.update(image["id"], {"extension": "jpg"})

    assert updated["extension"] == "jpg"
    assert updated["filename"].endswith(".jpg")
    assert updated["thumbnailFilename"].endswith(".jpg")
    assert updated["mimeType"] == "image/jpeg"
    assert not images.storage.exists(image["filename"])
    assert not images.storage.exists(image["thumbnailFilename"])
    with Image.open(images.storage.path(updated["filename"])) as converted:
        assert converted.format == "JPEG"


# ── 6. Logo ──────────────────────────────────────


@pytest.mark.asyncio
async def test_logo_upload_pinyin_name_and_target_size(services):
    logos = services["logo"]
    logo = await logos.create(
        {"name": "我的标志"},
        file=make_upload(make_image_bytes((1000, 500)), "whatever.png", "image/png"),
    )

    assert re.fullmatch(r"wo_de_biao_zhi_\d{14}\.png", logo["filename"])
    assert logo["extension"] == "png"
    assert logo["logoUrl"] == f"/v1/public/logos/{logo['filename']}"
    assert image_size(logos.storage, logo["filename"]) == (256, 128)


@pytest.mark.asyncio
async def test_logo_svg_stored_as_is(services):
    logos = services["logo"]
    svg = b'<svg xmlns="http://www.w3.org/2000/svg"/>'
    logo = await logos.create({"name": "Vector"}, file=make_upload(svg, "v.svg", "image/svg+xml"))

    assert logo["filename"].endswith(".svg")
    assert await logos.storage.read(logo["filename"]) == svg


@pytest.mark.asyncio
async def test_logo_size_limit(services):
    logos = services["logo"]
    logos.max_file_size = 10
    with pytest.raises(BusinessException) as exc_info:
        await logos.create({"name": "Big"}, file=make_upload(make_image_bytes(), "big.png", "image/png"))
    assert exc_info.value.code == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_logo_rename_on_name_change(services):
    logos = services["logo"]
    logo = await logos.create({"name": "Old"}, file=make_upload(make_image_bytes(), "x.png", "image/png"))

    updated = await logos.update(logo["id"], {"name": "GitHub Logo"})

    assert updated["filename"].startswith("git_hub_logo_")
    assert logos.storage.exists(updated["filename"])
    assert not logos.storage.exists(logo["filename"])


@pytest.mark.asyncio
async def test_logo_url_without_known_extension_defaults_png(services):
    logos = services["logo"]
    download = AsyncMock(return_value=make_image_bytes((64, 64)))
    with patch.object(FileStorage, "download", download):
        logo = await logos.create({"name": "remote", "original_url": "https://example.com/logo?id=3"})

    assert logo["extension"] == "png"
    assert logo["filename"].endswith(".png")


# ── 7. 单词 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_vocabulary_assets_named_after_word(services):
    vocabularies = services["vocabulary_ru"]
    word = await vocabularies.create(
        {"name": "Ice Cream", "translation": "冰淇淋"},
        image=make_upload(make_image_bytes(), "photo.png"),
        audio=make_upload(MP3_BYTES, "sound.mp3"),
    )

    assert word["imageFilename"] == "ice-cream.png"
    assert word["phoneticAudioFilename"] == "ice-cream.mp3"
    assert word["imageUrl"] == "/v1/public/rubi/vocabularies/images/ice-cream.png"
    assert word["phoneticAudioUrl"] == "/v1/public/rubi/vocabularies/audios/ice-cream.mp3"
    assert vocabularies.storage.exists("ice-cream.png", IMAGE_SUBDIR)
    assert vocabularies.storage.exists("ice-cream.mp3", AUDIO_SUBDIR)


@pytest.mark.asyncio
async def test_vocabulary_duplicate_word_rejected(services):
    vocabularies = services["vocabulary_ru"]
    await vocabularies.create({"name": "apple"})
    with pytest.raises(BusinessException) as exc_info:
        await vocabularies.create({"name": "apple"})
    assert exc_info.value.code == ErrorCode.DUPLICATE_RESOURCE


@pytest.mark.asyncio
async def test_vocabulary_rename_renames_files(services):
    vocabularies = services["vocabulary_ru"]
    word = await vocabularies.create(
        {"name": "colour"},
        image=make_upload(make_image_bytes(), "c.png"),
        audio=make_upload(MP3_BYTES, "c.mp3"),
    )

    updated = await vocabularies.update(word["id"], {"name": "color"})

    assert updated["imageFilename"] == "color.png"
    assert updated["phoneticAudioFilename"] == "color.mp3"
    assert not vocabularies.storage.exists("colour.png", IMAGE_SUBDIR)
    assert vocabularies.storage.exists("color.mp3", AUDIO_SUBDIR)


@pytest.mark.asyncio
async def test_vocabulary_downloads_only_changed_http_urls(services):
    vocabularies = services["vocabulary_ru"]
    url = "https://dict.example.com/audio/run.mp3"
    download = AsyncMock(return_value=MP3_BYTES)

    with patch.object(FileStorage, "download", download):
        word = await vocabularies.create({"name": "run", "phonetic_audio_original_url": url})
        await vocabularies.update(word["id"], {"phonetic_audio_original_url": url, "translation": "跑"})
        await vocabularies.update(word["id"], {"image_original_url": "ftp://example.com/run.png"})

    assert download.await_count == 1
    assert word["phoneticAudioFilename"] == "run.mp3"


# ── 8. 附属图片 ──────────────────────────────────────


@pytest.mark.asyncio
async def test_article_image_records_dimensions(services):
    article_images = services["article_image"]
    image = await article_images.create(
        {"article_id": "a-1", "article_title": "Hello"},
        file=make_upload(make_image_bytes((2400, 1200)), "inline.png"),
    )

    assert (image["width"], image["height"]) == (1920, 960)
    assert image["fileUrl"] == "/v1/public/articles/content-images/inline.png"

    listed = await article_images.list_all(filters={"article_id": "a-1"})
    assert [i["id"] for i in listed] == [image["id"]]


@pytest.mark.asyncio
async def test_attached_image_requires_source(services):
    with pytest.raises(BusinessException) as exc_info:
        await services["question_image_ru"].create({"multiple_choice_question_id": "q-1"})
    assert exc_info.value.message == "Either file or originalUrl is required"


# ── 9. 更新失败清理 ──────────────────────────────────────


def failing_update():
    return AsyncMock(side_effect=BusinessException(ErrorCode.DUPLICATE_RESOURCE, "Record already exists"))


@pytest.mark.asyncio
async def test_article_update_failure_removes_new_cover(services):
    articles = services["article"]
    article = await articles.create({"title": "A"}, cover=make_upload(make_image_bytes(), "old.png"))

    with patch.object(CrudService, "update", failing_update()):
        with pytest.raises(BusinessException):
            await articles.update(
                article["id"], {"summary": "s"}, cover=make_upload(make_image_bytes(), "new.png")
            )

    assert not articles.storage.exists("new.png", COVER_SUBDIR)
    assert articles.storage.exists("old.png", COVER_SUBDIR)


@pytest.mark.asyncio
async def test_audio_update_failure_removes_new_files(services):
    audios = services["audio_ru"]
    audio = await audios.create({"name": "Track"}, file=make_upload(MP3_BYTES, "track.mp3"))

    with patch.object(CrudService, "update", failing_update()):
        with pytest.raises(BusinessException):
            await audios.update(
                audio["id"], {"artist": "Band"},
                file=make_upload(MP3_BYTES, "remix.mp3"),
                cover=make_upload(make_image_bytes(), "art.png"),
            )

    assert not audios.storage.exists("remix.mp3")
    assert not audios.storage.exists("art.png", COVER_SUBDIR)
    assert audios.storage.exists("track.mp3")


@pytest.mark.asyncio
async def test_vocabulary_update_failure_restores_files(services):
    vocabularies = services["vocabulary_ru"]
    word = await vocabularies.create(
        {"name": "colour"},
        image=make_upload(make_image_bytes(), "c.png"),
        audio=make_upload(MP3_BYTES, "c.mp3"),
    )

    with patch.object(CrudService, "update", failing_update()):
        with pytest.raises(BusinessException):
            await vocabularies.update(
                word["id"], {"name": "color"}, image=make_upload(make_image_bytes(), "new.png")
            )

    assert vocabularies.storage.exists("colour.png", IMAGE_SUBDIR)
    assert not vocabularies.storage.exists("color.png", IMAGE_SUBDIR)
    assert vocabularies.storage.exists("colour.mp3", AUDIO_SUBDIR)
    assert not vocabularies.storage.exists("color.mp3", AUDIO_SUBDIR)


@pytest.mark.asyncio
async def test_logo_update_failure_restores_filename(services):
    logos = services["logo"]
    logo = await logos.create({"name": "Old"}, file=make_upload(make_image_bytes(), "x.png", "image/png"))

    with patch.object(CrudService, "update", failing_update()):
        with pytest.raises(BusinessException):
            await logos.update(logo["id"], {"name": "New"})

    assert logos.storage.exists(logo["filename"])
