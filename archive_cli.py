#!/usr/bin/env python3
"""
Project Archive command-line tool

Browse, search and manage the project catalog through the archive API.

Usage:
    python archive_cli.py list
    python archive_cli.py search wetland --tag gis
    python archive_cli.py tags
    python archive_cli.py add "Wetland Survey" https://example.org/a.pdf --tags ecology,gis
    python archive_cli.py delete "Wetland Survey"
    python archive_cli.py health
"""

import os
import sys
import argparse

from dotenv import load_dotenv

from src.archive.client import ArchiveClient, ArchiveAPIError, parse_tags
from src.archive.view import CatalogView, ERROR, EMPTY


def print_projects(projects):
    for project in projects:
        tags = ', '.join(project.get('tags', []))
        print(f"{project['title']}")
        print(f"  File: {project.get('file', '')}")
        if tags:
            print(f"  Tags: {tags}")
        if project.get('createdAt'):
            print(f"  Added: {project['createdAt']}")


def load_view(client, catalog_url=None):
    view = CatalogView()
    view.fetch(client, url=catalog_url)
    if view.state == ERROR:
        print("Error: failed to load projects")
        sys.exit(1)
    return view


def cmd_list(client, args):
    view = load_view(client, args.catalog_url)
    print_projects(view.filtered)
    print(f"\n{len(view.filtered)} project(s)")


def cmd_search(client, args):
    view = load_view(client, args.catalog_url)
    for tag in args.tag or []:
        view.toggle_tag(tag)
    if args.term:
        view.set_search_term(args.term)
        view.flush()

    if view.state == EMPTY:
        print("No projects match your search.")
        return
    if args.html:
        print(view.render_cards())
        return
    print_projects(view.filtered)
    print(f"\n{len(view.filtered)} of {len(view.all_projects)} project(s)")


def cmd_tags(client, args):
    view = load_view(client, args.catalog_url)
    for tag in view.tag_vocabulary():
        print(tag)


def cmd_add(client, args):
    project = client.add_project(args.title, args.file, parse_tags(args.tags))
    print(f"Added project: \"{project['title']}\" ({project['createdAt']})")


def cmd_delete(client, args):
    project = client.delete_project(args.title)
    print(f"Deleted project: \"{project['title']}\"")


def cmd_health(client, args):
    status = client.health()
    print(f"{status['status']} (version {status.get('version', '?')}) at {status.get('timestamp', '')}")


def main(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(description='Manage the project archive')
    parser.add_argument('--server', default=os.environ.get('ARCHIVE_API_URL', 'http://localhost:3000'),
                        help='Archive API base URL')
    parser.add_argument('--token', default=os.environ.get('SECRET_TOKEN', ''),
                        help='Bearer token for add/delete')
    parser.add_argument('--catalog-url', help='Read a static projects.json from this URL instead of the API')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('list', help='List all projects').set_defaults(func=cmd_list)

    search = sub.add_parser('search', help='Search projects by title or tag')
    search.add_argument('term', nargs='?', default='', help='Free-text search term')
    search.add_argument('--tag', action='append', help='Only show projects with this tag (repeatable)')
    search.add_argument('--html', action='store_true', help='Print HTML project cards')
    search.set_defaults(func=cmd_search)

    sub.add_parser('tags', help='List every tag in the catalog').set_defaults(func=cmd_tags)

    add = sub.add_parser('add', help='Add a project')
    add.add_argument('title')
    add.add_argument('file', help='URL of the document')
    add.add_argument('--tags', default='', help='Comma-separated tags')
    add.set_defaults(func=cmd_add)

    delete = sub.add_parser('delete', help='Delete a project by title')
    delete.add_argument('title')
    delete.set_defaults(func=cmd_delete)

    sub.add_parser('health', help='Check the API is up').set_defaults(func=cmd_health)

    args = parser.parse_args(argv)
    client = ArchiveClient(args.server, token=args.token)

    try:
        args.func(client, args)
    except ArchiveAPIError as e:
        status = f" (HTTP {e.status_code})" if e.status_code else ''
        print(f"Error{status}: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
