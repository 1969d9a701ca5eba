# generator.py

import os
from datetime import datetime
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader

import config

# --- Jinja2 环境配置 ---
env = Environment(
    loader=FileSystemLoader(config.TEMPLATE_DIR),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True
)


def render_page(page: Dict[str, Any]) -> str:
    """
    渲染单个页面。
    模板中包含控制器所需的结构：source 区域 (隐藏的 callout 所在处)、展开区域和清除按钮。
    """
    template = env.get_template(config.PAGE_TEMPLATE)
    context = {
        'page_title': page['title'],
        'site_title': config.SITE_TITLE,
        'site_author': config.SITE_AUTHOR,
        'content_html': page['content_html'],
        'toc_html': page.get('toc_html'),
        'controller': config.CONTROLLER_NAME,
        'target_attr': config.TARGET_ATTR,
        'source_target': config.SOURCE_TARGET,
        'expansion_target': config.EXPANSION_TARGET,
        'current_year': datetime.now().year,
    }
    return template.render(context)


def page_output_path(slug: str) -> str:
    if slug == 'index':
        return os.path.join(config.BUILD_DIR, 'index.html')
    return os.path.join(config.BUILD_DIR, slug, 'index.html')


def generate_page(page: Dict[str, Any]) -> Optional[str]:
    """生成单个页面，返回输出路径；失败时打印错误并返回 None。"""
    try:
        output_path = page_output_path(page['slug'])
        os.makedirs(os.path.dirname(output_path), exist_ok=True)

        html_content = render_page(page)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(html_content)
        print(f"Generated: {output_path}")
        return output_path

    except Exception as e:
        print(f"Error generating page {page.get('title')}: {e}")
        return None
