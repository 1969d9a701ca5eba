# dom.py - 基于 BeautifulSoup 的页面模型 (带事件监听注册表)

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

import config


@dataclass(frozen=True)
class Event:
    type: str
    target: Tag


Handler = Callable[[Event], None]


class PageDocument:
    """
    一个已渲染页面的内存表示。

    BeautifulSoup 提供按 id 查询、深拷贝、替换子节点；
    事件监听按元素对象身份 (id()) 登记，与浏览器中的 addEventListener 行为一致：
    同一 (元素, 事件类型, 处理函数) 只登记一次。
    """

    def __init__(self, html: str):
        self.soup = BeautifulSoup(html, 'html.parser')
        # id(element) -> (element, [(event_type, handler), ...])
        self._listeners: Dict[int, Tuple[Tag, List[Tuple[str, Handler]]]] = {}

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def add_event_listener(self, element: Tag, event_type: str, handler: Handler) -> None:
        _, handlers = self._listeners.setdefault(id(element), (element, []))
        if (event_type, handler) not in handlers:
            handlers.append((event_type, handler))

    def remove_event_listener(self, element: Tag, event_type: str, handler: Handler) -> None:
        entry = self._listeners.get(id(element))
        if entry is None:
            return
        handlers = entry[1]
        if (event_type, handler) in handlers:
            handlers.remove((event_type, handler))
        if not handlers:
            del self._listeners[id(element)]

    def dispatch(self, element: Tag, event_type: str) -> int:
        """按登记顺序同步调用处理函数，返回被调用的数量。"""
        entry = self._listeners.get(id(element))
        if entry is None:
            return 0
        matched = [h for t, h in entry[1] if t == event_type]
        event = Event(event_type, element)
        for handler in matched:
            handler(event)
        return len(matched)

    def hover(self, element: Tag) -> int:
        return self.dispatch(element, config.HOVER_EVENT)

    def listener_count(self, element: Optional[Tag] = None) -> int:
        if element is not None:
            entry = self._listeners.get(id(element))
            return len(entry[1]) if entry else 0
        return sum(len(handlers) for _, handlers in self._listeners.values())

    def html(self) -> str:
        return str(self.soup)
