# parser.py

import os
import re
import unicodedata
from typing import Any, Dict, Iterable, List, Tuple

import markdown
import yaml
from bs4 import BeautifulSoup

import config
from callouts import CalloutExtension, all_callout_ids, warn_duplicate_ids

# -------------------------------------------------------------------------
# 【TOC/目录专用 Slugify】: 专为 Markdown TOC 扩展设计
# -------------------------------------------------------------------------
def my_custom_slugify(s: str, separator: str) -> str:
    """
    自定义 slugify 函数，用于 Markdown TOC 锚点生成。
    兼容中文和国际字符。
    """
    s = str(s).lower().strip()
    s = unicodedata.normalize('NFKD', s)
    s = re.sub(r'[^\w\s-]', '', s)
    s = re.sub(r'[\s-]+', separator, s).strip(separator)
    return s


def split_front_matter(content: str, source: str = '<string>') -> Tuple[Dict[str, Any], str]:
    """分隔 YAML Frontmatter 和正文。没有 Frontmatter 时返回 ({}, content)。"""
    match = re.match(r'---\s*\n(.*?)\n---\s*\n', content, re.DOTALL)
    if not match:
        return {}, content

    body = content[len(match.group(0)):]
    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        print(f"Error parsing YAML frontmatter in {source}: {exc}")
        metadata = {}
    if not isinstance(metadata, dict):
        print(f"Error parsing YAML frontmatter in {source}: expected a mapping")
        metadata = {}
    return metadata, body


# --- Markdown 渲染 ---

def create_markdown() -> markdown.Markdown:
    """按 config 创建 Markdown 实例，并注入 callout 扩展。"""
    extension_configs = {k: dict(v) for k, v in config.MARKDOWN_EXTENSION_CONFIGS.items()}

    # 动态注入 slugify 函数
    if 'toc' in extension_configs:
        extension_configs['toc']['slugify'] = my_custom_slugify

    return markdown.Markdown(
        extensions=config.MARKDOWN_EXTENSIONS + [CalloutExtension(render_markdown=render_markdown)],
        extension_configs=extension_configs,
        output_format='html5',
    )


def render_markdown(text: str) -> str:
    """
    外层文档和 callout 内容共用的渲染函数。
    每次调用新建实例：callout 渲染发生在外层转换过程中，不能复用同一个实例。
    """
    return create_markdown().convert(text)


def find_unknown_triggers(content_html: str, callout_ids: Iterable[str]) -> List[str]:
    """返回页面中指向不存在 callout 的触发目标 (按文档顺序，去重)。"""
    known = set(callout_ids)
    soup = BeautifulSoup(content_html, 'html.parser')
    # 渲染后的 callout 容器本身也算已知目标
    known.update(
        tag['id'] for tag in soup.find_all(attrs={config.CALLOUT_VARIANT_ATTR: True})
        if tag.has_attr('id')
    )

    unknown: List[str] = []
    for trigger in soup.find_all(attrs={config.EXPAND_ATTR: True}):
        target = trigger.get(config.EXPAND_ATTR)
        if target not in known and target not in unknown:
            unknown.append(target)
    return unknown


def get_metadata_and_content(md_file_path: str) -> Tuple[Dict[str, Any], str, str, str]:
    """
    从 Markdown 文件中读取 Frontmatter 元数据和内容。
    返回: (metadata, content_markdown, content_html, toc_html)
    """
    try:
        with open(md_file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        print(f"Error reading file {md_file_path}: {e}")
        return {}, "", "", ""

    metadata, content_markdown = split_front_matter(content, md_file_path)

    # --- 元数据处理 ---

    # 1. slug
    if 'slug' not in metadata:
        base_name = os.path.splitext(os.path.basename(md_file_path))[0]
        slug_match = re.match(r'^(\d{4}-\d{2}-\d{2}-)?(.*)$', base_name)
        if slug_match and slug_match.group(2):
            metadata['slug'] = slug_match.group(2).lower()
        else:
            metadata['slug'] = base_name.lower()
    metadata['slug'] = str(metadata['slug'])

    # 2. title
    if 'title' not in metadata:
        metadata['title'] = metadata['slug'].replace('-', ' ').title()

    # --- Markdown 渲染 ---
    md = create_markdown()
    content_html = md.convert(content_markdown)
    toc_html = getattr(md, 'toc', '')

    # 包含嵌套在其他 callout 内的块
    metadata['callouts'] = all_callout_ids(md.callouts)
    warn_duplicate_ids(metadata['callouts'])

    for target in find_unknown_triggers(content_html, metadata['callouts']):
        print(f"Warning: {md_file_path}: trigger references unknown callout '{target}'")

    return metadata, content_markdown, content_html, toc_html
