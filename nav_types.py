from dataclasses import dataclass, field
from typing import Any, Dict, List, Union


class ConfigurationError(RuntimeError):
	"""Raised when the site definition cannot produce a valid configuration."""


@dataclass(frozen=True)
class NavigationEntry:
	text: str
	link: str

	def to_dict(self) -> Dict[str, Any]:
		return {"text": self.text, "link": self.link}


@dataclass(frozen=True)
class NavigationGroup:
	text: str
	items: List["NavItem"] = field(default_factory=list)

	def to_dict(self) -> Dict[str, Any]:
		return {"text": self.text, "items": [item.to_dict() for item in self.items]}

	def first_link(self) -> Union[str, None]:
		for item in self.items:
			if isinstance(item, NavigationEntry):
				return item.link
			nested = item.first_link()
			if nested:
				return nested
		return None


NavItem = Union[NavigationEntry, NavigationGroup]

# Route prefix -> ordered groups
Sidebar = Dict[str, List[NavigationGroup]]


def join_link(prefix: str, stem: str) -> str:
	"""Compose a route from a link prefix and a document stem.

	The result always starts with a single '/' and never contains '//'.
	"""
	head = "/" + prefix.strip("/") if prefix.strip("/") else ""
	tail = stem.strip("/")
	if not tail:
		return head + "/"
	return f"{head}/{tail}"


def items_from_yaml(data: Any, where: str = "guide") -> List[NavItem]:
	if not isinstance(data, list):
		raise ConfigurationError(f"{where}: expected a list of navigation items")
	items: List[NavItem] = []
	for idx, raw in enumerate(data):
		label = f"{where}[{idx}]"
		if not isinstance(raw, dict) or not isinstance(raw.get("text"), str):
			raise ConfigurationError(f"{label}: every item needs a 'text' label")
		if "items" in raw:
			items.append(NavigationGroup(raw["text"], items_from_yaml(raw["items"], label)))
		elif isinstance(raw.get("link"), str):
			items.append(NavigationEntry(raw["text"], raw["link"]))
		else:
			raise ConfigurationError(f"{label}: item '{raw['text']}' has neither 'link' nor 'items'")
	return items


def sidebar_to_dict(sidebar: Sidebar) -> Dict[str, List[Dict[str, Any]]]:
	return {prefix: [group.to_dict() for group in groups] for prefix, groups in sidebar.items()}
