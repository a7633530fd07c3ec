from django.core.management.base import BaseCommand, CommandError

from tracker.models import Issue
from tracker.selectors.comment import CommentSelector
from tracker.selectors.project import ProjectSelector
from tracker.services.issue import IssueService


class Command(BaseCommand):
    help = "Rebuild Issue.comment_count from the non-deleted comments of each issue."

    def add_arguments(self, parser):
        parser.add_argument("--project", dest="project_key", help="Only issues of this project key")
        parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")

    def handle(self, *args, **opts):
        issues = Issue.objects.select_related("project").order_by("id")

        key = opts.get("project_key")
        if key:
            project = ProjectSelector.get_project_by_key(key.strip().upper())
            if project is None:
                raise CommandError(f"Project {key} not found")
            issues = issues.filter(project=project)

        checked = fixed = 0
        for issue in issues.iterator():
            checked += 1
            before = issue.comment_count
            if opts.get("dry_run"):
                after = CommentSelector.count_visible(issue.pk)
            else:
                after = IssueService.recount_comments(issue)
            if after != before:
                fixed += 1
                self.stdout.write(f"{issue.key}: {before} -> {after}")

        verb = "would fix" if opts.get("dry_run") else "fixed"
        self.stdout.write(self.style.SUCCESS(f"Checked {checked} issues, {verb} {fixed}."))
