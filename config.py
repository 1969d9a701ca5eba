# config.py

import os

# --- 站点配置 ---
SITE_TITLE = "Notes & Triggers"
SITE_AUTHOR = "Quentin"

# --- Markdown 配置 ---
# 1. 扩展列表 (使用短名称)
#    callouts 扩展由 parser.create_markdown() 单独注入 (需要传入渲染函数)
MARKDOWN_EXTENSIONS = [
    'extra',              # 包含 fenced_code (```), tables, footnotes
    'codehilite',         # 代码高亮 (必须安装 Pygments)
    'toc',                # 目录
    'sane_lists',         # 更好的列表
    'pymdownx.tilde',     # 删除线支持 (~~text~~)
]

# 2. 扩展具体配置 (使用短名称作为键)
MARKDOWN_EXTENSION_CONFIGS = {
    'toc': {
        'baselevel': 2,
    },
    'codehilite': {
        'linenums': False,
        'css_class': 'highlight',
        'use_pygments': True,
        'noclasses': False,            # 使用 CSS 类而不是内联样式
        'guess_lang': False,
    },
}
# --- Markdown 配置结束 ---


# --- Callout 配置 ---
# 标记语法: [!note:ID] ... [/!note] 与 [!trigger:ID] ... [/!trigger]
CALLOUT_VARIANTS = ('note', 'trigger')
CALLOUT_CLASS = 'callout'                 # 所有 callout 容器共有的类名
CALLOUT_VARIANT_ATTR = 'data-callout'     # 记录变体名称
HIDDEN_ATTR = 'hidden'                    # 可见性开关 (HTML hidden 属性)

# 运行时控制器使用的属性 (与模板保持一致)
EXPAND_ATTR = 'data-expand'               # 触发元素: data-expand="ID"
CONTROLLER_NAME = 'callouts'
TARGET_ATTR = f'data-{CONTROLLER_NAME}-target'
SOURCE_TARGET = 'source'
EXPANSION_TARGET = 'expansion'
EXPANSION_WRAPPER_CLASS = 'callout-expansion'
EXPANDED_FROM_ATTR = 'data-expanded-from'
HOVER_EVENT = 'mouseenter'
# --- Callout 配置结束 ---


# --- 目录和文件配置 ---
MARKDOWN_DIR = 'markdown'
BUILD_DIR = '_site'
TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')
PAGE_TEMPLATE = 'page.html'
MANIFEST_FILE = '.build_manifest.json'
