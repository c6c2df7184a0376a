# ecocreds/cli.py
import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash
from .extensions import db
from .model import User
from .services.checkout_service import load_account
from .services.reward_service import issue_credit
from .utils.money import to_minor, to_string_money

@click.command("create-admin")
@with_appcontext
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")

@click.command("issue-credit")
@with_appcontext
@click.option("--email", required=True)
@click.option("--value", required=True, help="credit value in major units, e.g. 50")
@click.option("--min-order", default="0", show_default=True, help="minimum order subtotal in major units")
@click.option("--code", default=None)
def issue_credit_cmd(email, value, min_order, code):
    u = User.query.filter_by(email=email.strip().lower()).first()
    if not u:
        raise click.ClickException(f"No user with email {email}")
    try:
        row = issue_credit(u, to_minor(value), to_minor(min_order), code=code)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"Credit {row.code} issued to {u.email}: {to_string_money(row.value)} off orders >= {to_string_money(row.min_order_value)}")

@click.command("show-account")
@with_appcontext
@click.option("--email", required=True)
def show_account(email):
    u = User.query.filter_by(email=email.strip().lower()).first()
    if not u:
        raise click.ClickException(f"No user with email {email}")
    account = load_account(u)
    status = account.status
    click.echo(f"{u.email}: {account.point_balance} EcoCredits")
    click.echo(f"Level: {status.current_label} -> {status.next_label} ({status.progress_to_next:.1f}%)")
    for c in account.unused_credits():
        click.echo(f"  credit {c.code}: {to_string_money(c.value)} off orders >= {to_string_money(c.min_order_value)}")

def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(issue_credit_cmd)
    app.cli.add_command(show_account)
