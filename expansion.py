# expansion.py - 悬停展开控制器：把隐藏的 callout 克隆到唯一的展开区域

import copy
from dataclasses import dataclass
from typing import Dict, Optional, Union

from bs4 import BeautifulSoup, Tag

import config
from dom import Event, PageDocument

Root = Union[BeautifulSoup, Tag]


@dataclass(frozen=True)
class ExpansionState:
    """Idle (expanded_id is None) 或 Expanded(expanded_id)。"""
    expanded_id: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.expanded_id is None


IDLE = ExpansionState()


# --- 可见性 ---

def is_hidden(element: Tag) -> bool:
    return element.has_attr(config.HIDDEN_ATTR)


def set_hidden(element: Tag, hidden: bool) -> None:
    if hidden:
        element[config.HIDDEN_ATTR] = ''
    elif element.has_attr(config.HIDDEN_ATTR):
        del element[config.HIDDEN_ATTR]


# --- 纯状态转换 ---

def find_fragment(source_root: Root, target_id: str) -> Optional[Tag]:
    """按文档顺序返回第一个 id 匹配的元素 (重复 id 时结果稳定)。"""
    return source_root.find(id=target_id)


def expand(target_id: str, source_root: Optional[Root], slot: Optional[Tag],
           state: ExpansionState = IDLE) -> ExpansionState:
    """
    (target_id, source_root, slot) -> 新状态。

    找到片段时：深拷贝、取消隐藏、包裹一层 div，整体替换 slot 的全部子节点。
    找不到片段或缺少 slot 时：打印警告，不修改 DOM，返回原状态。
    """
    if slot is None:
        print(f"Warning: expansion slot not found; ignoring '{target_id}'.")
        return state

    fragment = find_fragment(source_root, target_id) if source_root is not None else None
    if fragment is None:
        print(f"Warning: callout not found: '{target_id}'")
        return state

    clone = copy.copy(fragment)
    set_hidden(clone, False)
    # 克隆体 (含嵌套的 callout) 不再携带 id，避免页面出现重复 id
    for tag in [clone, *clone.find_all(id=True)]:
        del tag['id']
    clone[config.EXPANDED_FROM_ATTR] = target_id

    wrapper = BeautifulSoup('', 'html.parser').new_tag(
        'div', attrs={'class': config.EXPANSION_WRAPPER_CLASS})
    wrapper.append(clone)

    slot.clear()
    slot.append(wrapper)
    return ExpansionState(target_id)


def clear_slot(slot: Optional[Tag], state: ExpansionState) -> ExpansionState:
    if slot is None:
        print("Warning: expansion slot not found; nothing to clear.")
        return state
    slot.clear()
    return IDLE


# --- 控制器 ---

class ExpansionController:
    """
    与单个页面绑定的控制器，持有该页面唯一的 Idle/Expanded 状态。

    attach() 为 root 下所有带 data-expand 属性的元素登记 mouseenter 处理函数，
    已登记过的触发元素会被跳过；detach() 移除本控制器登记的全部监听。
    """

    def __init__(self, page: PageDocument, root: Optional[Root] = None):
        self.page = page
        self.root: Root = root if root is not None else page.soup
        self._state = IDLE
        self._triggers: Dict[int, Tag] = {}

    @property
    def state(self) -> ExpansionState:
        return self._state

    @property
    def expanded_id(self) -> Optional[str]:
        return self._state.expanded_id

    def _find_target(self, name: str) -> Optional[Tag]:
        return self.root.find(attrs={config.TARGET_ATTR: name})

    @property
    def source(self) -> Root:
        # 没有标记 source 区域时，在整个 root 内查找
        source = self._find_target(config.SOURCE_TARGET)
        return source if source is not None else self.root

    @property
    def slot(self) -> Optional[Tag]:
        return self._find_target(config.EXPANSION_TARGET)

    def attach(self, root: Optional[Root] = None) -> int:
        """返回本次新登记的触发元素数量。"""
        scope = root if root is not None else self.root
        added = 0
        for trigger in scope.find_all(attrs={config.EXPAND_ATTR: True}):
            if id(trigger) in self._triggers:
                continue
            self.page.add_event_listener(trigger, config.HOVER_EVENT, self._on_event)
            self._triggers[id(trigger)] = trigger
            added += 1
        return added

    def detach(self) -> None:
        for trigger in self._triggers.values():
            self.page.remove_event_listener(trigger, config.HOVER_EVENT, self._on_event)
        self._triggers.clear()

    def _on_event(self, event: Event) -> None:
        self.on_hover_enter(event.target)

    def on_hover_enter(self, trigger: Tag) -> ExpansionState:
        target_id = trigger.get(config.EXPAND_ATTR)
        if not target_id:
            print("Warning: trigger element has no expand target.")
            return self._state
        self._state = expand(target_id, self.source, self.slot, self._state)
        return self._state

    def clear(self) -> ExpansionState:
        self._state = clear_slot(self.slot, self._state)
        return self._state
