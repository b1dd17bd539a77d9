"""
CLI entry points for QR tag inventory and label sheets.
"""

# Standard Library
import argparse
import json
import pathlib
import sys
import time

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.config
import qr_label_sheet.errors
import qr_label_sheet.inventory
import qr_label_sheet.render


SheetConfig = qls.config.SheetConfig
LabelSheetError = qls.errors.LabelSheetError

DEFAULT_INVENTORY = "qr_inventory.json"


#============================================
def build_sheet_config(args: argparse.Namespace) -> SheetConfig:
	"""
	Build sheet config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		SheetConfig.
	"""
	config = qls.config.build_default_sheet_config()
	config.caption_text = args.caption
	config.workers = max(1, args.workers)
	config.invariant = args.invariant
	config.filename = pathlib.Path(args.output_path).name
	return config


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Mint QR tags and print them on A4 label sheets.")
	parser.add_argument(
		"-i", "--inventory", dest="inventory_path", default=DEFAULT_INVENTORY,
		help="Inventory JSON path.",
	)
	subparsers = parser.add_subparsers(dest="command", required=True)

	batch_parser = subparsers.add_parser("batch", help="Mint new unclaimed codes.")
	batch_parser.add_argument("-n", "--count", dest="count", type=int, default=1, help="Number of codes (max 500).")
	batch_parser.add_argument("-b", "--base-url", dest="base_url", default=None, help="Site base URL.")

	labels_parser = subparsers.add_parser("labels", help="Generate a label sheet PDF.")
	labels_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	labels_parser.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	labels_parser.add_argument(
		"-f", "--filter", dest="filter_name", default=qls.inventory.FILTER_UNPRINTED,
		choices=qls.inventory.FILTERS, help="Which codes to print.",
	)
	labels_parser.add_argument("-n", "--count", dest="count", type=int, default=None, help="Number of labels (max 2000).")
	labels_parser.add_argument("-w", "--workers", dest="workers", type=int, default=1, help="QR encoding threads.")
	labels_parser.add_argument("-c", "--caption", dest="caption", default=qls.config.CAPTION_TEXT, help="Caption under each code.")
	labels_parser.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw cut guides.")
	labels_parser.add_argument("--invariant", dest="invariant", action="store_true", help="Write repeatable PDF output.")
	labels_parser.add_argument(
		"-p", "--mark-printed", dest="mark_printed", action="store_true",
		help="Stamp the printed codes in the inventory.",
	)

	mark_parser = subparsers.add_parser("mark-printed", help="Stamp codes as printed.")
	mark_group = mark_parser.add_mutually_exclusive_group(required=True)
	mark_group.add_argument("-s", "--short-code", dest="short_code", default=None, help="Single short code.")
	mark_group.add_argument("-n", "--count", dest="count", type=int, default=None, help="Newest open codes (max 500).")

	resolve_parser = subparsers.add_parser("resolve", help="Resolve a scanned short code.")
	resolve_parser.add_argument("code", help="Short code.")

	claim_parser = subparsers.add_parser("claim", help="Link an unclaimed code to a pet.")
	claim_parser.add_argument("code", help="Short code.")
	claim_parser.add_argument("pet_id", help="Pet identifier.")
	claim_parser.add_argument("-b", "--base-url", dest="base_url", default=None, help="Site base URL.")

	subparsers.add_parser("stats", help="Print inventory statistics.")

	args = parser.parse_args(argv)
	return args


#============================================
def run_batch(args: argparse.Namespace) -> None:
	inventory_path = pathlib.Path(args.inventory_path)
	inventory = qls.inventory.load_inventory(inventory_path)
	short_codes = qls.inventory.create_batch(inventory, args.count, args.base_url)
	qls.inventory.save_inventory(inventory_path, inventory)
	print(f"Codes minted: {len(short_codes)}")
	for short_code in short_codes:
		print(short_code)


#============================================
def run_labels(args: argparse.Namespace) -> None:
	"""
	Select codes and write a label sheet PDF.

	Args:
		args: Parsed argparse namespace.
	"""
	inventory_path = pathlib.Path(args.inventory_path)
	output_path = pathlib.Path(args.output_path)
	print("QR label sheet pipeline")
	print(f"Inventory: {inventory_path}")
	print(f"Output PDF: {output_path}")
	print(f"Filter: {args.filter_name}")

	start_time = time.perf_counter()
	inventory = qls.inventory.load_inventory(inventory_path)
	records = qls.inventory.select_records(inventory, args.filter_name, args.count)
	print(f"Records selected: {len(records)}")

	geometry = qls.config.DEFAULT_GEOMETRY
	config = build_sheet_config(args)
	sink = qls.render.ReportLabSink(
		title=config.title,
		invariant=config.invariant,
		draw_outlines=args.draw_outlines,
	)
	render_start = time.perf_counter()
	document = qls.render.build_label_document(records, geometry, sink=sink, config=config, verbose=True)
	render_end = time.perf_counter()

	result = qls.render.summarize_document(records, document, geometry)
	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	manifest_path = pathlib.Path(manifest_path)

	written: list[pathlib.Path] = []
	try:
		qls.render.write_manifest(manifest_path, records, result, geometry, config)
		written.append(manifest_path)
		qls.render.write_document(document, output_path)
		written.append(output_path)
		if args.mark_printed:
			codes = {record.code for record in records}
			ids = [entry.id for entry in inventory.tags if entry.short_code in codes]
			marked = qls.inventory.mark_printed(inventory, ids=ids)
			qls.inventory.save_inventory(inventory_path, inventory)
			print(f"Codes marked printed: {marked}")
	except LabelSheetError:
		for path in written:
			path.unlink(missing_ok=True)
		raise

	print(f"Pages written: {result.pages}")
	print(f"Labels printed: {result.total_labels}")
	print(f"Bytes written: {result.byte_length}")
	print(f"Manifest written: {manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			total_time,
		)
	)


#============================================
def run_mark_printed(args: argparse.Namespace) -> None:
	inventory_path = pathlib.Path(args.inventory_path)
	inventory = qls.inventory.load_inventory(inventory_path)
	marked = qls.inventory.mark_printed(inventory, short_code=args.short_code, count=args.count)
	qls.inventory.save_inventory(inventory_path, inventory)
	print(f"Codes marked printed: {marked}")


#============================================
def run_resolve(args: argparse.Namespace) -> None:
	inventory = qls.inventory.load_inventory(pathlib.Path(args.inventory_path))
	status, value = qls.inventory.resolve_code(inventory, args.code)
	if status == "claimed":
		print(f"claimed: /pets/{value}")
	elif status == "unclaimed":
		print(f"unclaimed: {value}")
	else:
		print("not_found")


#============================================
def run_claim(args: argparse.Namespace) -> None:
	inventory_path = pathlib.Path(args.inventory_path)
	inventory = qls.inventory.load_inventory(inventory_path)
	entry = qls.inventory.claim_code(inventory, args.code, args.pet_id, args.base_url)
	qls.inventory.save_inventory(inventory_path, inventory)
	print(f"Claimed {entry.short_code} for pet {entry.pet_id}")


#============================================
def run_stats(args: argparse.Namespace) -> None:
	inventory = qls.inventory.load_inventory(pathlib.Path(args.inventory_path))
	stats = qls.inventory.compute_stats(inventory)
	print(json.dumps(stats, indent=2, sort_keys=True))


COMMANDS = {
	"batch": run_batch,
	"labels": run_labels,
	"mark-printed": run_mark_printed,
	"resolve": run_resolve,
	"claim": run_claim,
	"stats": run_stats,
}


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Process exit code.
	"""
	args = parse_args(argv)
	try:
		COMMANDS[args.command](args)
	except LabelSheetError as error:
		if args.command == "labels":
			print("Error: could not generate labels", file=sys.stderr)
		print(f"Error: {error}", file=sys.stderr)
		return 1
	return 0
