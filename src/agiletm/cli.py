"""
Command Line Interface for agiletm.
"""

import functools
import click
from .version import VERSION
from .config import DATA_FILE_ENV
from .data import TrackerCore
from .data.validate import validate_file, write_schema
from .logs import setup_logging, get_logger
from .models import EntityType, LINK_FIELDS
from .recovery import AgileError, NotFoundError

log = get_logger("cli")

PLURALS = {"epic": "epics", "story": "stories", "task": "tasks", "sprint": "sprints"}


def reports_errors(func):
    """Turn tracker errors into a message on stderr and exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AgileError as e:
            log.debug(f"{func.__name__} failed: {e!r}")
            click.echo(f"❌ {e}", err=True)
            click.get_current_context().exit(1)
    return wrapper

def _core() -> TrackerCore:
    return click.get_current_context().find_object(TrackerCore)

def _typed(core: TrackerCore, entity_id: int, entity_type: EntityType):
    entity = core.store.find(entity_id)
    if entity is None or entity.type != entity_type.value:
        raise NotFoundError(f"{entity_type.value.capitalize()} with ID {entity_id} not found", entity_id=entity_id)
    return entity

def _summary(entity) -> str:
    return f"[{entity.id}] {entity.title} ({entity.status.value})"

def print_entity(core: TrackerCore, entity):
    """Print every field of an entity plus its children and comments."""
    click.echo(f"ID: {entity.id}")
    click.echo(f"Type: {entity.type}")
    click.echo(f"Title: {entity.title}")
    if getattr(entity, "assigned_to", None):
        click.echo(f"Assigned To: {entity.assigned_to}")
    click.echo(f"Description: {entity.description}")
    click.echo(f"Status: {entity.status.value}")
    click.echo(f"Archived: {str(entity.archived).lower()}")
    click.echo(f"Created At: {entity.created_at.isoformat()}")
    if entity.started_at:
        click.echo(f"Started At: {entity.started_at.isoformat()}")
    if entity.completed_at:
        click.echo(f"Completed At: {entity.completed_at.isoformat()}")

    if entity.entity_type is EntityType.SPRINT:
        click.echo(f"Start Date: {entity.start_date.isoformat()}")
        click.echo(f"End Date: {entity.end_date.isoformat()}")
        children = [
            ("Stories in Sprint", core.relations.stories_in_sprint(entity.id)),
            ("Tasks in Sprint", core.relations.tasks_in_sprint(entity.id)),
        ]
    else:
        if entity.story_points is not None:
            click.echo(f"Story Points: {entity.story_points}")
        if entity.difficulty is not None:
            click.echo(f"Difficulty: {entity.difficulty:g}")
        for field in LINK_FIELDS:
            parent = core.relations.parent(entity, field)
            if parent is not None:
                click.echo(f"{parent.type.capitalize()}: [{parent.id}] {parent.title}")
        children = []
        if entity.entity_type is EntityType.EPIC:
            children.append(("Stories in Epic", core.relations.stories_in_epic(entity.id)))
        elif entity.entity_type is EntityType.STORY:
            children.append(("Tasks in Story", core.relations.tasks_in_story(entity.id)))

    for heading, items in children:
        if items:
            click.echo(f"{heading}:")
            for item in items:
                click.echo(f"  [{item.id}] {item.title}")

    if entity.comments:
        click.echo("Comments:")
        for c in entity.comments:
            click.echo(f"  [{c.id}] {c.created_at.isoformat()}: {c.content}")


@click.group()
@click.version_option(version=VERSION, prog_name="agile")
@click.option('--data-file', envvar=DATA_FILE_ENV, type=click.Path(dir_okay=False),
              help='Tracker document (default: ./agile_data.json; .yml/.yaml stores YAML)')
@click.pass_context
def main(ctx, data_file):
    """
    agile - track epics, stories, tasks and sprints in a local file.
    """
    setup_logging()
    ctx.obj = TrackerCore.from_path(data_file)
    log.debug(f"Using {ctx.obj.backend!r}")


def _entity_group(entity_type: EntityType) -> click.Group:
    """Build the ``agile <type> ...`` command group for one entity type."""
    name = entity_type.value
    label = name.capitalize()
    is_sprint = entity_type is EntityType.SPRINT

    @click.group(name=name, help=f"Manage {PLURALS[name]}.")
    def group():
        pass

    id_option = click.option('--id', 'entity_id', type=int, required=True, help=f'ID of the {name}')

    if is_sprint:
        @group.command()
        @click.option('--title', help='Title of the sprint')
        @click.option('--description', help='Description')
        @click.option('--start', 'start_date', help='Start date (YYYY-MM-DD)')
        @click.option('--end', 'end_date', help='End date (YYYY-MM-DD)')
        @reports_errors
        def create(title, description, start_date, end_date):
            """Create a new sprint."""
            sprint = _core().store.create_sprint(title, description, start_date, end_date)
            click.echo(f"✅ Sprint created with ID {sprint.id}")
    else:
        @group.command(help=f"Create a new {name}.")
        @click.option('--title', help=f'Title of the {name}')
        @click.option('--description', help='Description')
        @click.option('--points', 'story_points', type=int, help='Story points')
        @click.option('--difficulty', type=float, help='Difficulty (engineering hours)')
        @click.option('--assigned-to', help='Assign to person')
        @reports_errors
        def create(title, description, story_points, difficulty, assigned_to):
            entity = _core().store.create(entity_type, title, description, story_points, difficulty, assigned_to)
            click.echo(f"✅ {label} created with ID {entity.id}")

        @group.command()
        @id_option
        @click.option('--epic', 'epic_id', type=int, help='Link to epic')
        @click.option('--story', 'story_id', type=int, help='Link to story')
        @click.option('--sprint', 'sprint_id', type=int, help='Assign to sprint')
        @reports_errors
        def link(entity_id, epic_id, story_id, sprint_id):
            """Link to an epic, story and/or sprint."""
            core = _core()
            _typed(core, entity_id, entity_type)
            core.relations.link(entity_id, epic_id=epic_id, story_id=story_id, sprint_id=sprint_id)
            click.echo(f"🔗 {label} {entity_id} linked successfully.")

        @group.command()
        @id_option
        @click.option('--field', 'fields', multiple=True, required=True,
                      type=click.Choice(['epic', 'story', 'sprint']), help='Link to clear (repeatable)')
        @reports_errors
        def unlink(entity_id, fields):
            """Clear epic, story and/or sprint links."""
            core = _core()
            _typed(core, entity_id, entity_type)
            core.relations.unlink(entity_id, *(f"{f}_id" for f in fields))
            click.echo(f"✂️  {label} {entity_id} unlinked from {', '.join(fields)}.")

        @group.command()
        @id_option
        @click.option('--to', 'assignee', help='User to assign to')
        @reports_errors
        def assign(entity_id, assignee):
            """Assign to a person."""
            core = _core()
            _typed(core, entity_id, entity_type)
            core.store.assign(entity_id, assignee)
            click.echo(f"👤 {label} {entity_id} assigned to {assignee}")

    @group.command(name="list", help=f"List {PLURALS[name]}.")
    @click.option('--all', 'include_archived', is_flag=True, help='Include archived entries')
    @reports_errors
    def list_(include_archived):
        entities = _core().store.list(entity_type, include_archived=include_archived)
        if not entities:
            click.echo(f"No {PLURALS[name]} found.")
            return
        for e in entities:
            click.echo(_summary(e) + (" [archived]" if e.archived else ""))

    @group.command(help=f"Show a {name} with its links and comments.")
    @id_option
    @reports_errors
    def show(entity_id):
        core = _core()
        print_entity(core, _typed(core, entity_id, entity_type))

    @group.command(help=f"Mark a {name} as doing.")
    @id_option
    @reports_errors
    def start(entity_id):
        entity = _core().lifecycle.start(entity_id, entity_type)
        click.echo(f"▶️  {label} started at {entity.started_at.isoformat()}")

    @group.command(help=f"Mark a {name} as done.")
    @id_option
    @reports_errors
    def complete(entity_id):
        entity = _core().lifecycle.complete(entity_id, entity_type)
        click.echo(f"✅ {label} completed at {entity.completed_at.isoformat()}")

    @group.command(help=f"Hide a {name} from default listings.")
    @id_option
    @reports_errors
    def archive(entity_id):
        core = _core()
        _typed(core, entity_id, entity_type)
        core.store.archive(entity_id)
        click.echo(f"📦 {label} archived.")

    @group.command(help=f"Show an archived {name} in listings again.")
    @id_option
    @reports_errors
    def unarchive(entity_id):
        core = _core()
        _typed(core, entity_id, entity_type)
        core.store.unarchive(entity_id)
        click.echo(f"📤 {label} restored.")

    @group.command(help=f"Permanently delete a {name} and its comments.")
    @id_option
    @reports_errors
    def delete(entity_id):
        core = _core()
        _typed(core, entity_id, entity_type)
        core.store.delete(entity_id)
        click.echo(f"🗑️  {label} deleted.")

    return group


for _entity_type in EntityType:
    main.add_command(_entity_group(_entity_type))


@main.group()
def comment():
    """Add and list comments on any entity."""
    pass

@comment.command()
@click.option('--id', 'entity_id', type=int, required=True, help='Entity ID')
@click.option('--content', help='Comment text')
@reports_errors
def add(entity_id, content):
    """Add a comment to an entity."""
    c = _core().store.add_comment(entity_id, content)
    click.echo(f"💬 Comment added with ID {c.id} to entity {entity_id}")

@comment.command(name="list")
@click.option('--id', 'entity_id', type=int, required=True, help='Entity ID')
@reports_errors
def list_comments(entity_id):
    """List the comments on an entity."""
    comments = _core().store.list_comments(entity_id)
    if not comments:
        click.echo(f"No comments for entity {entity_id}")
        return
    for c in comments:
        click.echo(f"[{c.id}] {c.created_at.isoformat()}: {c.content}")


@main.group()
def report():
    """Metrics, export and validation."""
    pass

@report.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the metrics as JSON')
@reports_errors
def metrics(as_json):
    """Show summary metrics."""
    m = _core().compute_metrics()
    if as_json:
        click.echo(m.model_dump_json(indent=2))
        return

    click.echo("📊 Entity Stats:")
    for type_name, stat in m.entity_stats.items():
        click.echo(f"  {PLURALS[type_name].capitalize()}: total {stat.total} "
                   f"(to do: {stat.to_do}, doing: {stat.doing}, done: {stat.done}, archived: {stat.archived})")
        click.echo(f"    Story Points: {stat.story_points}, Avg Difficulty: {stat.average_difficulty}")
    click.echo("")
    click.echo("🏃 Tasks per Sprint:")
    for sprint_id, load in m.tasks_per_sprint.items():
        click.echo(f"  [{sprint_id}] {load.title}: {load.count}")
    click.echo("")
    click.echo("👥 Tasks per Assignee:")
    for assignee, count in m.tasks_per_assignee.items():
        click.echo(f"  {assignee}: {count}")

@report.command()
@click.option('--format', 'format_', required=True, help='Export format (json or csv)')
@click.option('--output', required=True, type=click.Path(dir_okay=False), help='Output file path')
@reports_errors
def export(format_, output):
    """Export all data to JSON or CSV."""
    path = _core().export(format_, output)
    click.echo(f"✅ Data exported to {path}")

@report.command()
@click.option('--input', 'input_', required=True, type=click.Path(dir_okay=False), help='Document to check')
@reports_errors
def validate(input_):
    """Check a data file or JSON export against the document schema."""
    problems = validate_file(input_)
    if problems:
        click.echo(f"❌ {input_} is not a valid tracker document:", err=True)
        for p in problems:
            click.echo(f"   {p}", err=True)
        click.get_current_context().exit(1)
    click.echo(f"✅ {input_} is valid")

@report.command()
@click.option('--output', required=True, type=click.Path(dir_okay=False), help='Where to write the schema')
@reports_errors
def schema(output):
    """Write the JSON schema of the tracker document."""
    write_schema(output)
    click.echo(f"✅ Schema written to {output}")

if __name__ == "__main__":
    main()
