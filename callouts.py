# callouts.py - [!note:ID] / [!trigger:ID] callout 块预处理

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

import markdown
from bs4 import BeautifulSoup
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

import config

RenderFn = Callable[[str], str]


class Variant(Enum):
    """Callout 变体。只影响 CSS 类名，不影响提取逻辑。"""
    NOTE = 'note'
    TRIGGER = 'trigger'

    @property
    def css_class(self) -> str:
        return f'{config.CALLOUT_CLASS}-{self.value}'

    @property
    def opening(self) -> 're.Pattern[str]':
        return _OPENING_MARKERS[self]

    @property
    def closing(self) -> 're.Pattern[str]':
        return _CLOSING_MARKERS[self]


# 开始标记: [!note:ID]；结束标记: [/!note] 或 [/!note:ID] (结束处的 ID 不做比对)
_OPENING_MARKERS = {
    v: re.compile(r'^\[!%s:(?P<id>[\w-]+)\]$' % v.value) for v in Variant
}
_CLOSING_MARKERS = {
    v: re.compile(r'^\[/!%s(?::[\w-]+)?\]$' % v.value) for v in Variant
}


@dataclass(frozen=True)
class PlainText:
    """原样保留的源文本行 (含行尾换行符)。"""
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return ''.join(self.lines)


@dataclass(frozen=True)
class CalloutBlock:
    id: str
    variant: Variant
    raw_content: str
    rendered_html: str
    line_ending: str = ''
    # rendered_html 中嵌套的 callout id (按文档顺序)
    nested_ids: Tuple[str, ...] = ()


Segment = Union[PlainText, CalloutBlock]
Variants = Union[Variant, Sequence[Variant]]


def split_lines(text: str) -> List[str]:
    """只按 '\\n' 分行并保留行尾，与 Markdown 扩展的分行方式一致。"""
    parts = text.split('\n')
    lines = [part + '\n' for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _line_ending(line: str) -> str:
    return line[len(line.rstrip('\r\n')):]


def _find_closing(lines: Sequence[str], start: int, variant: Variant) -> Optional[int]:
    for index in range(start, len(lines)):
        if variant.closing.match(lines[index].rstrip()):
            return index
    return None


def _nested_ids(rendered_html: str) -> Tuple[str, ...]:
    if config.CALLOUT_VARIANT_ATTR not in rendered_html:
        return ()
    soup = BeautifulSoup(rendered_html, 'html.parser')
    return tuple(
        tag['id'] for tag in soup.find_all(attrs={config.CALLOUT_VARIANT_ATTR: True})
        if tag.has_attr('id')
    )


def scan(lines: Sequence[str], variants: Variants, render: RenderFn) -> List[Segment]:
    """
    按行扫描 callout 块，返回 PlainText / CalloutBlock 片段序列。

    所有变体在同一遍里按文档顺序识别，渲染后的内容不会再被扫描，
    因此变体的排列顺序不影响结果。
    非贪婪、不支持嵌套：块内再次出现的同类开始标记只是普通内容，
    第一个结束标记就会关闭外层块，剩下的结束标记作为普通文本保留。
    没有结束标记的开始标记原样保留。
    """
    if isinstance(variants, Variant):
        variants = (variants,)

    segments: List[Segment] = []
    pending: List[str] = []
    # 这些变体之后的开始标记同样找不到结束标记
    unterminated = set()
    index = 0

    while index < len(lines):
        line = lines[index]
        stripped = line.rstrip()
        found = None
        for variant in variants:
            if variant in unterminated:
                continue
            match = variant.opening.match(stripped)
            if not match:
                continue
            end = _find_closing(lines, index + 1, variant)
            if end is None:
                unterminated.add(variant)
            else:
                found = (variant, match.group('id'), end)
            break

        if found is None:
            pending.append(line)
            index += 1
            continue

        if pending:
            segments.append(PlainText(tuple(pending)))
            pending = []

        variant, block_id, end = found
        raw_content = ''.join(lines[index + 1:end])
        rendered_html = render(raw_content)
        segments.append(CalloutBlock(
            id=block_id,
            variant=variant,
            raw_content=raw_content,
            rendered_html=rendered_html,
            line_ending=_line_ending(lines[end]),
            nested_ids=_nested_ids(rendered_html),
        ))
        index = end + 1

    if pending:
        segments.append(PlainText(tuple(pending)))
    return segments


def render_container(block: CalloutBlock) -> str:
    """生成隐藏的 callout 容器: id、变体类名、hidden 属性、渲染后的内容。"""
    classes = f'{config.CALLOUT_CLASS} {block.variant.css_class}'
    return (
        f'<div id="{block.id}" class="{classes}" '
        f'{config.CALLOUT_VARIANT_ATTR}="{block.variant.value}" {config.HIDDEN_ATTR}>'
        f'{block.rendered_html}</div>'
    )


def join_segments(segments: Sequence[Segment]) -> str:
    parts = []
    for segment in segments:
        if isinstance(segment, CalloutBlock):
            # 前后空行：让外层 Markdown 把容器当作独立的 HTML 块
            parts.append(f'\n{render_container(segment)}\n{segment.line_ending}')
        else:
            parts.append(segment.text)
    return ''.join(parts)


class CalloutPreprocessor:
    """
    在外层 Markdown 渲染之前，把文档中的 callout 块替换为隐藏的 HTML 容器。

    一遍扫描同时识别所有变体；块内的 Markdown 交给 render_markdown 单独渲染，
    这样块级语法 (列表、代码块等) 不会被外层渲染器当作行内文本处理。
    块外的文本原样返回。
    """

    def __init__(self, render_markdown: RenderFn, variants: Sequence[Variant] = tuple(Variant)):
        self.render_markdown = render_markdown
        self.variants = tuple(variants)

    def extract(self, document: str) -> Tuple[str, List[CalloutBlock]]:
        """返回 (替换后的文档, 按文档顺序排列的顶层 callout 块列表)。"""
        segments = scan(split_lines(document), self.variants, self.render_markdown)
        blocks = [s for s in segments if isinstance(s, CalloutBlock)]
        if not blocks:
            return document, blocks
        return join_segments(segments), blocks

    def process(self, document: str) -> str:
        return self.extract(document)[0]


def all_callout_ids(blocks: Sequence[CalloutBlock]) -> List[str]:
    """顶层块及其嵌套块的 id，按文档顺序。"""
    ids: List[str] = []
    for block in blocks:
        ids.append(block.id)
        ids.extend(block.nested_ids)
    return ids


def warn_duplicate_ids(ids: Sequence[str]) -> List[str]:
    """
    重复的 id 不会被拒绝，运行时按文档顺序取第一个匹配。
    这里只打印警告，返回重复的 id 列表。
    """
    seen = set()
    duplicates: List[str] = []
    for callout_id in ids:
        if callout_id in seen and callout_id not in duplicates:
            duplicates.append(callout_id)
            print(f"Warning: duplicate callout id '{callout_id}'; the first one in the document wins.")
        seen.add(callout_id)
    return duplicates


# --- Python-Markdown 扩展 ---

class CalloutBlockPreprocessor(Preprocessor):
    """在 html_block 之前运行，生成的容器随后被当作原始 HTML 暂存。"""

    def __init__(self, md: markdown.Markdown, render_markdown: RenderFn):
        super().__init__(md)
        self.callouts = CalloutPreprocessor(render_markdown)

    def run(self, lines: List[str]) -> List[str]:
        text, blocks = self.callouts.extract('\n'.join(lines))
        self.md.callouts = blocks
        return text.split('\n')


class CalloutExtension(Extension):
    """
    用法: markdown.Markdown(extensions=[CalloutExtension(render_markdown=fn)])

    转换后 md.callouts 保存本次找到的 CalloutBlock 列表 (类似 toc 扩展的 md.toc)。
    未提供 render_markdown 时，块内内容由一个同样启用本扩展的嵌套 Markdown 实例渲染。
    """

    def __init__(self, **kwargs):
        # 可调用对象不能走 Extension.config (setConfig 会把它转换成 bool)
        self.render_markdown: Optional[RenderFn] = kwargs.pop('render_markdown', None)
        self.md: Optional[markdown.Markdown] = None
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        self.md = md
        md.callouts = []
        md.registerExtension(self)
        render = self.render_markdown or _nested_render
        # normalize_whitespace (30) 之后；fenced_code_block (25) 与 html_block (20) 之前，
        # 否则块内的代码块会先被外层暂存
        md.preprocessors.register(CalloutBlockPreprocessor(md, render), 'callouts', 27)

    def reset(self) -> None:
        if self.md is not None:
            self.md.callouts = []


def _nested_render(text: str) -> str:
    return markdown.markdown(text, extensions=[CalloutExtension()], output_format='html5')


def makeExtension(**kwargs):
    return CalloutExtension(**kwargs)
