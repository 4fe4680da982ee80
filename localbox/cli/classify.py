"""Print the category each filename would be stored under."""

from localbox.server.services.classifier import classify


def subcommand_classify(args) -> None:
    for filename in args.filenames:
        print(f"{classify(filename).value}\t{filename}")


def add_parser(subparsers):
    parser_classify = subparsers.add_parser(
        "classify", help="show the category for one or more filenames"
    )
    parser_classify.add_argument("filenames", nargs="+", help="file names to classify")
    parser_classify.set_defaults(func=subcommand_classify)
