"""
Local JSON inventory of minted QR tags.

The inventory feeds the label sheet generator: new codes are minted in
batches, unprinted and unclaimed codes are selected for printing, and
printed codes are stamped so they are not printed twice. A printed tag
is later claimed for a pet, after which its short code redirects to
that pet's profile.
"""

# Standard Library
import dataclasses
import datetime
import json
import pathlib
import uuid

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.codes
import qr_label_sheet.config
import qr_label_sheet.errors
import qr_label_sheet.layout


LabelRecord = qls.layout.LabelRecord
InputError = qls.errors.InputError
InventoryError = qls.errors.InventoryError
ClaimError = qls.errors.ClaimError

BATCH_MAX = qls.config.BATCH_MAX
SELECT_HARD_CAP = qls.config.SELECT_HARD_CAP
SELECT_FALLBACK_COUNT = qls.config.SELECT_FALLBACK_COUNT
SELECT_DEFAULT_UNPRINTED = qls.config.SELECT_DEFAULT_UNPRINTED
SELECT_DEFAULT_ALL = qls.config.SELECT_DEFAULT_ALL
STATS_RECENT_LIMIT = qls.config.STATS_RECENT_LIMIT
INVENTORY_VERSION = qls.config.INVENTORY_VERSION

FILTER_UNPRINTED = "unprinted"
FILTER_ALL = "all"
FILTERS = (FILTER_UNPRINTED, FILTER_ALL)


@dataclasses.dataclass
class TagEntry:
	id: str
	short_code: str
	qr_code_data: str
	created_at: str
	printed_at: str | None = None
	pet_id: str | None = None

	@property
	def is_open(self) -> bool:
		return self.printed_at is None and self.pet_id is None


@dataclasses.dataclass
class Inventory:
	tags: list[TagEntry] = dataclasses.field(default_factory=list)

	def find_code(self, short_code: str) -> TagEntry | None:
		for entry in self.tags:
			if entry.short_code == short_code:
				return entry
		return None

	def newest_first(self) -> list[TagEntry]:
		return sorted(self.tags, key=lambda entry: entry.created_at, reverse=True)


#============================================
def utc_now() -> str:
	return datetime.datetime.now(datetime.timezone.utc).isoformat()


#============================================
def clamp(value: int, low: int, high: int) -> int:
	return min(max(value, low), high)


#============================================
def load_inventory(path: pathlib.Path) -> Inventory:
	"""
	Load an inventory file; a missing file is an empty inventory.

	Args:
		path: Inventory JSON path.

	Returns:
		Inventory.
	"""
	if not path.exists():
		return Inventory()
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except (OSError, ValueError) as error:
		raise InventoryError(f"Cannot read inventory {path}: {error}") from error
	if not isinstance(data, dict) or not isinstance(data.get("tags"), list):
		raise InventoryError(f"Inventory {path} has no tag list")
	tags: list[TagEntry] = []
	for item in data["tags"]:
		try:
			tags.append(TagEntry(**item))
		except TypeError as error:
			raise InventoryError(f"Bad tag entry in {path}: {item!r}") from error
	return Inventory(tags=tags)


#============================================
def save_inventory(path: pathlib.Path, inventory: Inventory) -> None:
	"""
	Write an inventory file.

	Args:
		path: Inventory JSON path.
		inventory: Inventory to write.
	"""
	data = {
		"version": INVENTORY_VERSION,
		"tags": [dataclasses.asdict(entry) for entry in inventory.tags],
	}
	try:
		path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
	except OSError as error:
		raise InventoryError(f"Cannot write inventory {path}: {error}") from error


#============================================
def create_batch(
	inventory: Inventory,
	count: int,
	base_url: str | None = None,
	now: str | None = None,
) -> list[str]:
	"""
	Mint a batch of unclaimed short codes.

	Args:
		inventory: Inventory to add to.
		count: Requested number of codes, clamped to 1..500.
		base_url: Site base URL for destination URLs.
		now: Creation timestamp, defaults to the current UTC time.

	Returns:
		The new short codes in creation order.
	"""
	count = clamp(count, 1, BATCH_MAX)
	base = qls.codes.resolve_base_url(base_url)
	created_at = now or utc_now()
	existing = {entry.short_code for entry in inventory.tags}
	short_codes: list[str] = []
	while len(short_codes) < count:
		short_code = qls.codes.generate_short_code()
		if short_code in existing:
			continue
		existing.add(short_code)
		short_codes.append(short_code)
		inventory.tags.append(
			TagEntry(
				id=uuid.uuid4().hex,
				short_code=short_code,
				qr_code_data=qls.codes.build_destination_url(base, short_code),
				created_at=created_at,
			)
		)
	return short_codes


#============================================
def resolve_select_limit(filter_name: str, count: int | str | None) -> int:
	"""
	Work out how many records to select.

	Args:
		filter_name: Selection filter.
		count: Requested count, if any.

	Returns:
		Record limit.
	"""
	if count is None or count == "":
		if filter_name == FILTER_UNPRINTED:
			return SELECT_DEFAULT_UNPRINTED
		return SELECT_DEFAULT_ALL
	try:
		requested = int(count)
	except (TypeError, ValueError):
		requested = 0
	if requested == 0:
		requested = SELECT_FALLBACK_COUNT
	return clamp(requested, 1, SELECT_HARD_CAP)


#============================================
def select_records(
	inventory: Inventory,
	filter_name: str = FILTER_UNPRINTED,
	count: int | str | None = None,
) -> list[LabelRecord]:
	"""
	Select records to print, newest first.

	Args:
		inventory: Inventory.
		filter_name: "unprinted" keeps codes neither printed nor claimed,
			"all" keeps every code.
		count: Optional record count, capped at 2000.

	Returns:
		Label records.
	"""
	if filter_name not in FILTERS:
		raise InputError(f"Unknown filter: {filter_name}")
	limit = resolve_select_limit(filter_name, count)
	entries = inventory.newest_first()
	if filter_name == FILTER_UNPRINTED:
		entries = [entry for entry in entries if entry.is_open]
	return [
		LabelRecord(code=entry.short_code, destination_url=entry.qr_code_data)
		for entry in entries[:limit]
	]


#============================================
def mark_printed(
	inventory: Inventory,
	short_code: str | None = None,
	count: int | None = None,
	ids: list[str] | None = None,
	now: str | None = None,
) -> int:
	"""
	Stamp tags as printed.

	Exactly one selector is used, checked in this order: a single short
	code, the newest count open tags, or explicit entry ids.

	Args:
		inventory: Inventory.
		short_code: Single short code.
		count: Number of newest open tags, clamped to 1..500.
		ids: Entry ids.
		now: Timestamp, defaults to the current UTC time.

	Returns:
		Number of tags marked.
	"""
	selected: list[TagEntry] = []
	if short_code is not None and short_code.strip():
		entry = inventory.find_code(short_code.strip())
		if entry is not None:
			selected = [entry]
	elif count is not None and count > 0:
		limit = clamp(count, 1, BATCH_MAX)
		selected = [entry for entry in inventory.newest_first() if entry.is_open][:limit]
	elif ids:
		wanted = set(ids)
		selected = [entry for entry in inventory.tags if entry.id in wanted]
	if not selected:
		raise InputError("Nothing to mark as printed")
	printed_at = now or utc_now()
	for entry in selected:
		entry.printed_at = printed_at
	return len(selected)


#============================================
def resolve_code(inventory: Inventory, code: str) -> tuple[str, str | None]:
	"""
	Resolve a scanned short code.

	Args:
		inventory: Inventory.
		code: Raw short code from the URL.

	Returns:
		("not_found", None), ("claimed", pet_id) or ("unclaimed", code).
	"""
	normalized = qls.codes.normalize_short_code(code)
	entry = inventory.find_code(normalized)
	if entry is None:
		return ("not_found", None)
	if entry.pet_id is not None:
		return ("claimed", entry.pet_id)
	return ("unclaimed", normalized)


#============================================
def claim_code(
	inventory: Inventory,
	code: str,
	pet_id: str,
	base_url: str | None = None,
) -> TagEntry:
	"""
	Link an unclaimed tag to a pet.

	Any other tag already linked to the pet is released.

	Args:
		inventory: Inventory.
		code: Short code printed on the tag.
		pet_id: Pet identifier.
		base_url: Site base URL for the refreshed destination URL.

	Returns:
		The claimed entry.
	"""
	normalized = qls.codes.normalize_short_code(code)
	if not normalized:
		raise ClaimError("Enter a tag code")
	if not pet_id or not pet_id.strip():
		raise ClaimError("Missing pet id")
	entry = inventory.find_code(normalized)
	if entry is None or entry.pet_id is not None:
		raise ClaimError(f"Tag not found or already claimed: {normalized}")
	for other in inventory.tags:
		if other is not entry and other.pet_id == pet_id:
			other.pet_id = None
	base = qls.codes.resolve_base_url(base_url)
	entry.pet_id = pet_id
	entry.qr_code_data = qls.codes.build_destination_url(base, normalized)
	return entry


#============================================
def compute_stats(inventory: Inventory, recent_limit: int = STATS_RECENT_LIMIT) -> dict:
	"""
	Summarize the inventory.

	Args:
		inventory: Inventory.
		recent_limit: Number of newest entries to list.

	Returns:
		Dictionary of counts plus a "recent" list.
	"""
	tags = inventory.tags
	recent = [
		{
			"short_code": entry.short_code,
			"created_at": entry.created_at,
			"printed_at": entry.printed_at,
			"claimed": entry.pet_id is not None,
			"pet_id": entry.pet_id,
		}
		for entry in inventory.newest_first()[:recent_limit]
	]
	return {
		"total": len(tags),
		"unclaimed": sum(1 for entry in tags if entry.pet_id is None),
		"claimed": sum(1 for entry in tags if entry.pet_id is not None),
		"unprinted": sum(1 for entry in tags if entry.printed_at is None),
		"unprinted_unclaimed": sum(1 for entry in tags if entry.is_open),
		"recent": recent,
	}
